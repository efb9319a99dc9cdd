"""Thread-safe counter and gauge values"""
import threading


class Counter:
    """Monotonically increasing value"""
    
    def __init__(self, value: float = 0.0):
        self._value = value
        self._lock = threading.Lock()
    
    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts")
        with self._lock:
            self._value += amount
    
    @property
    def value(self) -> float:
        with self._lock:
            return self._value


class Gauge:
    """Value that can be set to anything"""
    
    def __init__(self, value: float = 0.0):
        self._value = value
        self._lock = threading.Lock()
    
    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)
    
    @property
    def value(self) -> float:
        with self._lock:
            return self._value
