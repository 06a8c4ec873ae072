# cart.py - سلة التسوق المحفوظة لدى العميل (الجلسة) مع دمج العناصر المتطابقة

import json
import logging
from typing import List

from options import CartLine, generate_options_key, parse_options

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = 'ecommerce_cart'


class MemoryStorage(object):
    """تخزين في الذاكرة (للاختبارات والأدوات)"""

    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def remove(self, key):
        self.data.pop(key, None)


class SessionStorage(object):
    """تخزين داخل جلسة Flask (كوكي موقّع في متصفح العميل)"""

    def __init__(self, session):
        self.session = session

    def get(self, key):
        return self.session.get(key)

    def set(self, key, value):
        self.session[key] = value
        self.session.modified = True

    def remove(self, key):
        self.session.pop(key, None)
        self.session.modified = True


class CartStore(object):
    def __init__(self, storage, storage_key=CART_STORAGE_KEY):
        self.storage = storage
        self.storage_key = storage_key
        self._lines: List[CartLine] = []
        self._load()

    # ========== التحميل والحفظ ==========

    def _load(self):
        saved = self.storage.get(self.storage_key)
        if not saved:
            return
        try:
            parsed = json.loads(saved)
        except (TypeError, ValueError) as e:
            logger.error('Failed to parse cart from storage: %s', e)
            return
        if not isinstance(parsed, list):
            logger.error('Stored cart is not a list, ignoring it')
            return

        for entry in parsed:
            if not isinstance(entry, dict):
                logger.warning('Skipping malformed cart entry: %r', entry)
                continue
            try:
                line = CartLine.from_dict(entry)
            except (TypeError, ValueError) as e:
                logger.warning('Skipping malformed cart entry %r: %s', entry, e)
                continue
            existing = self.get_line(line.options_key)
            if existing is not None:
                existing.quantity += line.quantity
            else:
                self._lines.append(line)

    def _persist(self):
        try:
            self.storage.set(self.storage_key, json.dumps([line.to_dict() for line in self._lines], ensure_ascii=False))
        except Exception:
            logger.exception('Failed to save cart to storage')

    # ========== العمليات ==========

    @property
    def items(self) -> List[CartLine]:
        return list(self._lines)

    def get_line(self, options_key):
        for line in self._lines:
            if line.options_key == options_key:
                return line
        return None

    def is_empty(self):
        return not self._lines

    def add_to_cart(self, item, quantity=1) -> CartLine:
        """إضافة منتج؛ نفس المنتج بنفس الخيارات يزيد الكمية بدل إنشاء سطر جديد"""
        if isinstance(quantity, bool) or int(quantity) != quantity or quantity < 1:
            raise ValueError('Quantity must be a positive integer')
        quantity = int(quantity)
        options = parse_options(item.get('options') or {})
        options_key = generate_options_key(item['product_id'], options)

        line = self.get_line(options_key)
        if line is not None:
            line.quantity += quantity
        else:
            line = CartLine(
                product_id=str(item['product_id']),
                name=item.get('name') or '',
                price=float(item.get('price') or 0),
                quantity=quantity,
                image=item.get('image') or '',
                options=options,
                options_key=options_key,
            )
            self._lines.append(line)
        self._persist()
        return line

    def remove_from_cart(self, options_key):
        self._lines = [line for line in self._lines if line.options_key != options_key]
        self._persist()

    def update_quantity(self, options_key, quantity):
        if quantity < 1:
            self.remove_from_cart(options_key)
            return
        line = self.get_line(options_key)
        if line is not None:
            line.quantity = int(quantity)
        self._persist()

    def clear_cart(self):
        self._lines = []
        try:
            self.storage.remove(self.storage_key)
        except Exception:
            logger.exception('Failed to remove cart from storage')

    def get_cart_total(self):
        return sum(line.subtotal for line in self._lines)

    def get_cart_count(self):
        return sum(line.quantity for line in self._lines)

    def to_dict(self):
        return {
            'items': [line.to_dict() for line in self._lines],
            'total': self.get_cart_total(),
            'count': self.get_cart_count(),
        }
