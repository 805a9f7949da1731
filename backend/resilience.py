from __future__ import annotations

"""
backend/resilience.py

Circuit breaker por fuente (clave = nombre de la fuente: "aftercredits", "tmdb", ...).

Estados:
    - CLOSED    (normal)
    - OPEN      (la fuente falla en bloque: se corta sin tocar la red)
    - HALF_OPEN (pasado el cooldown se permite 1 petición de prueba)

Los reintentos viven SOLO en el transporte (urllib3 Retry en backend/http_client.py).
Aquí no se reintenta nada: un fallo cuenta una vez y el resolvedor pasa a la
siguiente fuente.

Thread-safe. No hace logging: http_client.py decide qué loguear con el estado.
"""

import threading
import time
from dataclasses import dataclass
from typing import Final

STATE_CLOSED: Final[str] = "CLOSED"
STATE_OPEN: Final[str] = "OPEN"
STATE_HALF_OPEN: Final[str] = "HALF_OPEN"


@dataclass
class CircuitState:
    failures: int = 0
    opened_at: float = 0.0
    state: str = STATE_CLOSED
    last_error: str = ""
    rejected: int = 0


class CircuitBreaker:
    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        open_seconds: float = 30.0,
        clock=time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, CircuitState] = {}
        self._probing: set[str] = set()
        self._failure_threshold = max(1, int(failure_threshold))
        self._open_seconds = max(0.1, float(open_seconds))
        self._clock = clock

    def _state_for(self, key: str) -> CircuitState:
        st = self._states.get(key)
        if st is None:
            st = CircuitState()
            self._states[key] = st
        return st

    def allow(self, key: str) -> tuple[bool, str]:
        """
        Decide si se permite la llamada a la fuente `key`.
        Returns: (allowed, reason)
        """
        now = self._clock()
        with self._lock:
            st = self._state_for(key)

            if st.state == STATE_CLOSED:
                return True, "closed"

            if st.state == STATE_OPEN:
                if (now - st.opened_at) >= self._open_seconds:
                    st.state = STATE_HALF_OPEN
                    self._probing.add(key)
                    return True, "half_open:probe"
                st.rejected += 1
                return False, "open"

            # HALF_OPEN: solo una prueba en vuelo
            if key in self._probing:
                st.rejected += 1
                return False, "half_open:probe_inflight"
            self._probing.add(key)
            return True, "half_open:probe"

    def on_success(self, key: str) -> None:
        with self._lock:
            st = self._state_for(key)
            st.failures = 0
            st.last_error = ""
            st.opened_at = 0.0
            st.state = STATE_CLOSED
            self._probing.discard(key)

    def on_failure(self, key: str, *, error: str) -> None:
        now = self._clock()
        with self._lock:
            st = self._state_for(key)
            st.failures += 1
            st.last_error = str(error)[:500]

            if st.state == STATE_HALF_OPEN or st.failures >= self._failure_threshold:
                st.state = STATE_OPEN
                st.opened_at = now
                self._probing.discard(key)

    def state_of(self, key: str) -> CircuitState | None:
        with self._lock:
            st = self._states.get(key)
            return None if st is None else CircuitState(**st.__dict__)

    def snapshot(self) -> dict[str, dict[str, object]]:
        with self._lock:
            return {
                key: {"state": st.state, "failures": st.failures, "rejected": st.rejected}
                for key, st in self._states.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._states.clear()
            self._probing.clear()
