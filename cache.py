# cache.py - تخزين مؤقت بسيط في الذاكرة مع مدة صلاحية

import threading
import time

CACHE_KEYS = {
    'CATEGORIES': 'categories',
    'HOME': 'homepage-data',
}


class DataCache(object):
    def __init__(self, default_ttl_minutes=5, clock=time.monotonic):
        self.default_ttl_minutes = default_ttl_minutes
        self.clock = clock
        self._items = {}
        self._lock = threading.Lock()

    def set(self, key, data, ttl_minutes=None):
        ttl = (self.default_ttl_minutes if ttl_minutes is None else ttl_minutes) * 60
        with self._lock:
            self._items[key] = (data, self.clock() + ttl)

    def get(self, key):
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            data, expires_at = item
            if self.clock() > expires_at:
                del self._items[key]
                return None
            return data

    def clear(self, key=None):
        with self._lock:
            if key:
                self._items.pop(key, None)
            else:
                self._items.clear()

    def get_or_set(self, key, factory, ttl_minutes=None):
        data = self.get(key)
        if data is None:
            data = factory()
            self.set(key, data, ttl_minutes)
        return data
