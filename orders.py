# orders.py - إنشاء الطلبات (الطلب أولاً ثم عناصره)

import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from models import Order, OrderItem, db

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('customer_name', 'phone', 'city', 'address')


class OrderValidationError(ValueError):
    def __init__(self, message, code):
        self.code = code
        super().__init__(message)


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def _product_id(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def create_order(payload):
    """إنشاء طلب من لقطة السلة وإرجاع معرفه

    فشل حفظ عناصر الطلب لا يلغي الطلب نفسه؛ يُسجل الخطأ ويعاد المعرف.
    """
    payload = payload or {}
    missing = [name for name in REQUIRED_FIELDS if not _text(payload.get(name))]
    if missing:
        raise OrderValidationError(f"Missing required fields: {', '.join(missing)}", 'missing_fields')
    items = payload.get('items') or []
    if not items:
        raise OrderValidationError('Order has no items', 'no_items')

    order = Order(
        customer_name=_text(payload['customer_name']),
        phone=_text(payload['phone']),
        city=_text(payload['city']),
        address=_text(payload['address']),
        notes=_text(payload.get('notes')) or None,
        total_price=float(payload.get('total_price') or 0),
        status='pending'
    )
    db.session.add(order)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    try:
        for item in items:
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=_product_id(item.get('product_id')),
                product_name=item.get('product_name') or '',
                price=float(item.get('price') or 0),
                quantity=int(item.get('quantity') or 1),
                options=json.dumps(item['options'], ensure_ascii=False) if item.get('options') else None
            ))
        db.session.commit()
    except (SQLAlchemyError, TypeError, ValueError, AttributeError) as e:
        db.session.rollback()
        logger.error('Order items error for order %s: %s', order.id, e)

    return order.id
