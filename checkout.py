# checkout.py - إتمام الشراء: التحقق من بيانات التوصيل وإرسال الطلب

import logging
import re
import threading
import time

import requests
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from messages import DEFAULT_LANG, t
from orders import OrderValidationError
from retry import linear_backoff, retry

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^[+]?[\d\s-]{8,}$')
NETWORK_HINTS = ('network', 'connection', 'timeout', 'timed out', 'fetch', 'unreachable')
MAX_ATTEMPTS = 3


class CheckoutError(Exception):
    pass


class DeliveryFormError(CheckoutError):
    def __init__(self, errors):
        self.errors = errors
        super().__init__('Invalid delivery form')


class EmptyCartError(CheckoutError):
    pass


class DuplicateSubmissionError(CheckoutError):
    pass


class OrderSubmissionError(CheckoutError):
    def __init__(self, message, is_network=False):
        self.is_network = is_network
        super().__init__(message)


class OrderApiError(Exception):
    def __init__(self, message, status_code=None, details=None):
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class TransientOrderError(OrderApiError):
    """خطأ مؤقت (شبكة أو 5xx) تجوز إعادة المحاولة بعده"""


class OrderRejectedError(OrderApiError):
    """رفض الخادم الطلب (4xx)، لا فائدة من إعادة المحاولة"""


# ========== التحقق من النموذج ==========

def _clean(form, name):
    value = form.get(name)
    return value.strip() if isinstance(value, str) else ''


def validate_delivery_form(form, lang=DEFAULT_LANG):
    errors = {}
    if not _clean(form, 'customer_name'):
        errors['customer_name'] = t('name_required', lang)
    phone = _clean(form, 'phone')
    if not phone:
        errors['phone'] = t('phone_required', lang)
    elif not PHONE_PATTERN.match(phone):
        errors['phone'] = t('phone_invalid', lang)
    if not _clean(form, 'city'):
        errors['city'] = t('city_required', lang)
    if not _clean(form, 'address'):
        errors['address'] = t('address_required', lang)
    return errors


def build_order_payload(cart, form):
    """لقطة من السلة وبيانات التوصيل بالشكل الذي يقبله endpoint الطلبات"""
    return {
        'customer_name': _clean(form, 'customer_name'),
        'phone': _clean(form, 'phone'),
        'city': _clean(form, 'city'),
        'address': _clean(form, 'address'),
        'notes': _clean(form, 'notes') or None,
        'total_price': cart.get_cart_total(),
        'items': [
            {
                'product_id': line.product_id or None,
                'product_name': line.name,
                'price': line.price,
                'quantity': line.quantity,
                'options': line.to_dict()['options'] or None,
            }
            for line in cart.items
        ],
    }


# ========== عملاء endpoint الطلبات ==========

class HttpOrderClient(object):
    def __init__(self, url, session=None, timeout=10):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def create_order(self, payload):
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransientOrderError(f'Network error: {e}') from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            message = data.get('error') or f'HTTP {response.status_code}'
            error_class = TransientOrderError if response.status_code >= 500 else OrderRejectedError
            raise error_class(message, status_code=response.status_code, details=data.get('details'))

        order_id = data.get('orderId')
        if not data.get('success') or order_id is None:
            raise OrderRejectedError('Malformed order response', status_code=response.status_code)
        return str(order_id)


class LocalOrderClient(object):
    """ينادي خدمة الطلبات داخل نفس العملية (عندما لا يوجد ORDER_API_URL)"""

    def __init__(self, create_order):
        self._create_order = create_order

    def create_order(self, payload):
        try:
            return str(self._create_order(payload))
        except OrderValidationError as e:
            raise OrderRejectedError(str(e), status_code=400) from e
        except OperationalError as e:
            raise TransientOrderError(f'Database connection error: {e}') from e
        except SQLAlchemyError as e:
            raise OrderRejectedError(str(e), status_code=500) from e


# ========== منع الإرسال المزدوج ==========

class SubmissionGuard(object):
    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight = set()

    def acquire(self, token):
        with self._lock:
            if token in self._in_flight:
                return False
            self._in_flight.add(token)
            return True

    def release(self, token):
        with self._lock:
            self._in_flight.discard(token)


def _looks_like_network(error):
    text = str(error).lower()
    return isinstance(error, TransientOrderError) and any(hint in text for hint in NETWORK_HINTS)


def submit_order(cart, form, client, guard=None, token=None, lang=DEFAULT_LANG,
                 max_attempts=MAX_ATTEMPTS, backoff=None, sleep=time.sleep):
    """التحقق ثم إرسال الطلب مع إعادة المحاولة، وإفراغ السلة عند النجاح فقط"""
    errors = validate_delivery_form(form, lang)
    if errors:
        raise DeliveryFormError(errors)
    if cart.is_empty():
        raise EmptyCartError(t('cart_empty', lang))

    if guard is not None and not guard.acquire(token):
        raise DuplicateSubmissionError(t('order_in_progress', lang))
    try:
        payload = build_order_payload(cart, form)
        try:
            order_id = retry(
                lambda: client.create_order(payload),
                max_attempts=max_attempts,
                backoff=backoff or linear_backoff(1.0),
                retry_on=(TransientOrderError,),
                sleep=sleep,
            )
        except OrderApiError as e:
            logger.error('Order creation failed: %s', e)
            is_network = _looks_like_network(e)
            raise OrderSubmissionError(t('order_network' if is_network else 'order_failed', lang),
                                       is_network=is_network) from e
    finally:
        if guard is not None:
            guard.release(token)

    cart.clear_cart()
    logger.info('Order %s created with %d item(s)', order_id, len(payload['items']))
    return order_id
