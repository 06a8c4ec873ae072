# messages.py - نصوص الواجهة باللغتين العربية والفرنسية

DEFAULT_LANG = 'ar'
SUPPORTED_LANGS = ('ar', 'fr')

MESSAGES = {
    'ar': {
        'field_required': '{label} مطلوب',
        'field_min': '{label} يجب أن يكون {min} على الأقل',
        'field_max': '{label} يجب أن يكون {max} على الأكثر',
        'field_not_number': '{label} يجب أن يكون رقماً',
        'name_required': 'الاسم مطلوب',
        'phone_required': 'رقم الهاتف مطلوب',
        'phone_invalid': 'يرجى إدخال رقم هاتف صحيح',
        'city_required': 'المدينة مطلوبة',
        'address_required': 'العنوان مطلوب',
        'cart_empty': 'سلتك فارغة',
        'order_failed': 'فشل في إنشاء الطلب. يرجى المحاولة مرة أخرى.',
        'order_network': 'مشكلة في الاتصال بالإنترنت. يرجى التحقق من اتصالك والمحاولة مرة أخرى.',
        'order_in_progress': 'طلبك قيد الإرسال بالفعل',
        'order_created': 'تم إنشاء طلبك بنجاح',
        'product_not_found': 'المنتج غير موجود',
        'product_unavailable': 'المنتج غير متوفر بالكمية المطلوبة حالياً',
        'invalid_options': 'يرجى إكمال خيارات المنتج',
        'invalid_quantity': 'الكمية غير صحيحة',
        'cart_item_not_found': 'عنصر السلة غير موجود',
        'cart_added': 'تم إضافة المنتج إلى السلة بنجاح',
        'cart_updated': 'تم تحديث السلة بنجاح',
        'cart_removed': 'تم حذف المنتج من السلة',
        'cart_cleared': 'تم إفراغ السلة بنجاح',
    },
    'fr': {
        'field_required': '{label} est requis',
        'field_min': '{label} doit être au moins {min}',
        'field_max': '{label} doit être au plus {max}',
        'field_not_number': '{label} doit être un nombre',
        'name_required': 'Le nom est requis',
        'phone_required': 'Le numéro de téléphone est requis',
        'phone_invalid': 'Veuillez saisir un numéro de téléphone valide',
        'city_required': 'La ville est requise',
        'address_required': "L'adresse est requise",
        'cart_empty': 'Votre panier est vide',
        'order_failed': 'Échec de la création de la commande. Veuillez réessayer.',
        'order_network': 'Problème de connexion. Vérifiez votre connexion et réessayez.',
        'order_in_progress': 'Votre commande est déjà en cours d\'envoi',
        'order_created': 'Votre commande a été créée avec succès',
        'product_not_found': 'Produit introuvable',
        'product_unavailable': "Produit indisponible dans la quantité demandée",
        'invalid_options': 'Veuillez compléter les options du produit',
        'invalid_quantity': 'Quantité invalide',
        'cart_item_not_found': 'Article du panier introuvable',
        'cart_added': 'Produit ajouté au panier',
        'cart_updated': 'Panier mis à jour',
        'cart_removed': 'Produit retiré du panier',
        'cart_cleared': 'Panier vidé',
    },
}


def normalize_lang(lang):
    if not lang:
        return DEFAULT_LANG
    lang = lang.split(',')[0].split('-')[0].strip().lower()
    return lang if lang in SUPPORTED_LANGS else DEFAULT_LANG


def t(key, lang=DEFAULT_LANG, **params):
    """ترجمة مفتاح رسالة مع تعويض المتغيرات"""
    table = MESSAGES.get(normalize_lang(lang), MESSAGES[DEFAULT_LANG])
    template = table.get(key) or MESSAGES[DEFAULT_LANG].get(key, key)
    return template.format(**params) if params else template
