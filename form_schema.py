# form_schema.py - نماذج المنتجات الديناميكية (حقول يحددها المدير لكل فئة)

import json
import re
import time
from dataclasses import dataclass, field
from typing import List, Optional

from messages import DEFAULT_LANG, t
from options import MultiChoiceValue, NumberValue, TextValue, option_value

FIELD_TYPES = (
    'text', 'textarea', 'number', 'select', 'radio', 'checkbox',
    'color', 'size', 'date', 'email', 'phone', 'image',
)
CHOICE_TYPES = ('select', 'radio', 'checkbox')
MULTI_VALUE_TYPES = ('checkbox',)

# نوع الحقل -> (عنصر الواجهة، نوع الإدخال)
CONTROLS = {
    'text': ('input', 'text'),
    'textarea': ('textarea', None),
    'number': ('input', 'number'),
    'select': ('select', None),
    'radio': ('button-group', None),
    'checkbox': ('button-group', None),
    'color': ('swatches', None),
    'size': ('button-group', None),
    'date': ('input', 'date'),
    'email': ('input', 'email'),
    'phone': ('input', 'tel'),
    'image': ('input', 'file'),
}

HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


@dataclass
class ColorOption:
    name: str
    hex: str

    def to_dict(self):
        return {'name': self.name, 'hex': self.hex}


@dataclass
class FormField:
    id: str
    label: str
    type: str = 'text'
    required: bool = False
    options: List[str] = field(default_factory=list)
    color_options: List[ColorOption] = field(default_factory=list)
    placeholder: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_multi_value(self):
        return self.type in MULTI_VALUE_TYPES

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get('id') or ''),
            label=str(data.get('label') or ''),
            type=data.get('type') or 'text',
            required=bool(data.get('required', False)),
            options=[str(o) for o in (data.get('options') or [])],
            color_options=[
                ColorOption(name=str(c.get('name') or ''), hex=str(c.get('hex') or ''))
                for c in (data.get('colorOptions') or [])
            ],
            placeholder=data.get('placeholder'),
            min=_number_or_none(data.get('min')),
            max=_number_or_none(data.get('max')),
        )

    def to_dict(self):
        data = {
            'id': self.id,
            'label': self.label,
            'type': self.type,
            'required': self.required,
        }
        if self.options:
            data['options'] = list(self.options)
        if self.color_options:
            data['colorOptions'] = [c.to_dict() for c in self.color_options]
        if self.placeholder:
            data['placeholder'] = self.placeholder
        if self.min is not None:
            data['min'] = self.min
        if self.max is not None:
            data['max'] = self.max
        return data


@dataclass
class FormSchema:
    fields: List[FormField] = field(default_factory=list)

    @classmethod
    def from_json(cls, blob):
        """قبول dict أو نص JSON أو None (نموذج فارغ)"""
        if not blob:
            return cls()
        if isinstance(blob, (str, bytes)):
            blob = json.loads(blob)
        return cls(fields=[FormField.from_dict(f) for f in (blob.get('fields') or [])])

    def to_dict(self):
        return {'fields': [f.to_dict() for f in self.fields]}

    def to_json(self):
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def labels(self):
        return {f.id: f.label for f in self.fields}


def _number_or_none(value):
    if value is None or value == '':
        return None
    try:
        return float(value) if not isinstance(value, int) else value
    except (TypeError, ValueError):
        return None


def new_field_id():
    return f'field_{int(time.time() * 1000)}'


def schema_errors(schema: FormSchema) -> List[str]:
    """أخطاء في النموذج الذي أنشأه المدير (قائمة فارغة عند السلامة)"""
    errors = []
    seen = set()
    for index, f in enumerate(schema.fields, start=1):
        name = f.label or f.id or f'#{index}'
        if not f.id:
            errors.append(f'Field {index} has no id')
        elif f.id in seen:
            errors.append(f'Duplicate field id: {f.id}')
        seen.add(f.id)
        if not f.label.strip():
            errors.append(f'Field {name} has no label')
        if f.type not in FIELD_TYPES:
            errors.append(f'Field {name} has unknown type: {f.type}')
        if f.type in CHOICE_TYPES and not f.options:
            errors.append(f'Field {name} needs at least one option')
        if f.type == 'color':
            if not f.color_options:
                errors.append(f'Field {name} needs at least one color')
            for color in f.color_options:
                if not HEX_COLOR.match(color.hex):
                    errors.append(f'Field {name} has an invalid color: {color.hex}')
        if f.min is not None and f.max is not None and f.min > f.max:
            errors.append(f'Field {name} has min greater than max')
    return errors


def control_for(f: FormField):
    """وصف عنصر الواجهة المناسب لنوع الحقل"""
    control, input_type = CONTROLS.get(f.type, ('input', 'text'))
    descriptor = {
        'id': f.id,
        'label': f.label,
        'type': f.type,
        'required': f.required,
        'control': control,
        'input_type': input_type,
        'multiple': f.is_multi_value,
        'placeholder': f.placeholder,
    }
    if f.type in CHOICE_TYPES or f.type == 'size':
        descriptor['choices'] = list(f.options)
    if f.type == 'color':
        descriptor['swatches'] = [c.to_dict() for c in f.color_options]
    if f.type == 'number':
        descriptor['min'] = f.min
        descriptor['max'] = f.max
    return descriptor


def _coerce(f: FormField, raw):
    if raw is None:
        return None
    if f.is_multi_value:
        if isinstance(raw, (list, tuple)):
            return MultiChoiceValue(tuple(str(v) for v in raw if v not in (None, '')))
        return MultiChoiceValue(tuple(v.strip() for v in str(raw).split(',') if v.strip()))
    if f.type == 'number':
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return NumberValue(raw)
        text = str(raw).strip()
        if text == '':
            return TextValue('')
        try:
            number = float(text)
        except ValueError:
            # تبقى نصاً ليرفضها validate
            return TextValue(text)
        return NumberValue(int(number) if number.is_integer() else number)
    if isinstance(raw, (list, tuple)):
        return MultiChoiceValue(tuple(str(v) for v in raw))
    value = option_value(raw)
    return TextValue(value.key_text().strip()) if isinstance(value, TextValue) else value


def collect_options(fields, raw):
    """جمع قيم النموذج المرسلة حسب ترتيب الحقول وتجاهل المفاتيح غير المعروفة"""
    raw = raw if isinstance(raw, dict) else {}
    collected = {}
    for f in fields:
        value = _coerce(f, raw.get(f.id))
        if value is not None:
            collected[f.id] = value
    return collected


def _is_missing(value):
    return value is None or value == '' or value == [] or (hasattr(value, 'is_empty') and value.is_empty())


def _plain(number):
    return int(number) if isinstance(number, float) and number.is_integer() else number


def validate(fields, values, lang=DEFAULT_LANG):
    """التحقق من الحقول المطلوبة وحدود الأرقام، حقلاً بحقل"""
    errors = {}
    for f in fields:
        value = values.get(f.id)
        if f.required and _is_missing(value):
            errors[f.id] = t('field_required', lang, label=f.label)
            continue
        if f.type != 'number' or _is_missing(value):
            continue
        raw = value.to_json() if hasattr(value, 'to_json') else value
        try:
            number = float(raw)
        except (TypeError, ValueError):
            errors[f.id] = t('field_not_number', lang, label=f.label)
            continue
        if f.min is not None and number < f.min:
            errors[f.id] = t('field_min', lang, label=f.label, min=_plain(f.min))
        elif f.max is not None and number > f.max:
            errors[f.id] = t('field_max', lang, label=f.label, max=_plain(f.max))
    return {'isValid': not errors, 'errors': errors}


def humanize(key):
    label = re.sub(r'[_\-]+', ' ', key).strip()
    return re.sub(r'\b\w', lambda m: m.group(0).upper(), label)


def format_for_display(options, labels=None):
    """تنسيق الخيارات للعرض: "Label: value" مع تخطي القيم الفارغة"""
    lines = []
    for key, raw in (options or {}).items():
        if _is_missing(raw):
            continue
        value = option_value(raw)
        if value.is_empty():
            continue
        label = (labels or {}).get(key) or humanize(key)
        lines.append(f'{label}: {value.display_text()}')
    return lines
