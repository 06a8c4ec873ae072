# options.py - خيارات المنتج المختارة وعنصر السلة ومفتاح الهوية

import math
from dataclasses import dataclass, field
from typing import Dict, Union

KEY_SEPARATOR = '|'


def _number_text(number):
    if isinstance(number, float) and math.isfinite(number) and number.is_integer():
        return str(int(number))
    return str(number)


@dataclass(frozen=True)
class TextValue:
    value: str

    def is_empty(self):
        return self.value == ''

    def key_text(self):
        return self.value

    def display_text(self):
        return self.value

    def to_json(self):
        return self.value


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float]

    def is_empty(self):
        return False

    def key_text(self):
        return _number_text(self.value)

    def display_text(self):
        return _number_text(self.value)

    def to_json(self):
        return self.value


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    def is_empty(self):
        return False

    def key_text(self):
        return 'true' if self.value else 'false'

    def display_text(self):
        return self.key_text()

    def to_json(self):
        return self.value


@dataclass(frozen=True)
class MultiChoiceValue:
    values: tuple = ()

    def is_empty(self):
        return len(self.values) == 0

    def key_text(self):
        return ','.join(self.values)

    def display_text(self):
        return ', '.join(self.values)

    def to_json(self):
        return list(self.values)


OptionValue = Union[TextValue, NumberValue, BooleanValue, MultiChoiceValue]


def option_value(raw) -> OptionValue:
    """تحويل قيمة JSON خام إلى أحد أنواع الخيارات"""
    if isinstance(raw, (TextValue, NumberValue, BooleanValue, MultiChoiceValue)):
        return raw
    # bool قبل int لأن bool نوع فرعي من int
    if isinstance(raw, bool):
        return BooleanValue(raw)
    if isinstance(raw, (int, float)):
        return NumberValue(raw)
    if isinstance(raw, (list, tuple)):
        return MultiChoiceValue(tuple(option_value(v).key_text() for v in raw if v is not None))
    if raw is None:
        raise ValueError('Option value cannot be null')
    return TextValue(str(raw))


def parse_options(raw) -> Dict[str, OptionValue]:
    """قراءة خريطة الخيارات مع الحفاظ على ترتيب الإدخال (القيم الفارغة null تُهمل)"""
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ValueError('Options must be a mapping of field id to value')
    return {str(key): option_value(value) for key, value in raw.items() if value is not None}


def options_to_json(options):
    return {key: value.to_json() for key, value in options.items()}


def generate_options_key(product_id, options=None) -> str:
    """مفتاح فريد لكل منتج مع مجموعة خياراته (ترتيب الخيارات لا يؤثر)"""
    options = parse_options(options)
    if not options:
        return str(product_id)
    pairs = KEY_SEPARATOR.join(f'{key}:{options[key].key_text()}' for key in sorted(options))
    return f'{product_id}_{pairs}'


@dataclass
class CartLine:
    product_id: str
    name: str
    price: float
    quantity: int = 1
    image: str = ''
    options: Dict[str, OptionValue] = field(default_factory=dict)
    options_key: str = ''

    def __post_init__(self):
        if not self.options_key:
            self.options_key = generate_options_key(self.product_id, self.options)

    @property
    def subtotal(self):
        return self.price * self.quantity

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'image': self.image,
            'options': options_to_json(self.options),
            'optionsKey': self.options_key,
        }

    @classmethod
    def from_dict(cls, data):
        """قراءة سطر محفوظ، مع ترحيل السطور القديمة التي لا تحمل options أو optionsKey"""
        product_id = data.get('product_id')
        if product_id in (None, ''):
            raise ValueError('Cart line is missing product_id')
        raw_quantity = data.get('quantity')
        quantity = 1 if raw_quantity in (None, '') else int(raw_quantity)
        if quantity < 1:
            raise ValueError('Cart line quantity must be at least 1')
        options = parse_options(data.get('options') or {})
        return cls(
            product_id=str(product_id),
            name=data.get('name') or '',
            price=float(data.get('price') or 0),
            quantity=quantity,
            image=data.get('image') or '',
            options=options,
            options_key=data.get('optionsKey') or generate_options_key(str(product_id), options),
        )
