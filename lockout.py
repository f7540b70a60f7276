# lockout.py
import hmac
import hashlib
import logging

log = logging.getLogger(__name__)

# states
IDLE = "IDLE"
LOCKED = "LOCKED"
GRANTED = "GRANTED"

# submit() results
RESULT_GRANTED = "GRANTED"
RESULT_DENIED = "DENIED"
RESULT_LOCKED_OUT = "LOCKED_OUT"  # this wrong PIN started the lockout
RESULT_IGNORED = "IGNORED"        # submitted during lockout, not evaluated


def hash_pin(pin, salt_hex, iterations=100000):
    dk = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), bytes.fromhex(salt_hex), iterations)
    return dk.hex()


class PinVerifier:
    """Salted PBKDF2-SHA256 check; the PIN itself is never stored."""

    def __init__(self, salt_hex, pin_hash_hex, iterations=100000):
        self.salt_hex = salt_hex
        self.pin_hash_hex = pin_hash_hex.lower()
        self.iterations = iterations

    @classmethod
    def from_pin(cls, pin, salt_hex, iterations=100000):
        return cls(salt_hex, hash_pin(pin, salt_hex, iterations), iterations)

    def __call__(self, pin):
        candidate = hash_pin(pin, self.salt_hex, self.iterations)
        return hmac.compare_digest(candidate, self.pin_hash_hex)


class LockoutMachine:
    """
    Admin PIN gate.

    IDLE --wrong PIN--> IDLE, attempt_count+1
    IDLE --wrong PIN, attempt_count reaches max_attempts--> LOCKED (seconds_left = lockout_sec)
    LOCKED --tick()--> seconds_left-1; at 0 -> IDLE, attempt_count = 0
    LOCKED --submit()--> ignored: no strike, countdown unchanged
    IDLE --correct PIN--> GRANTED, attempt_count = 0

    Lockout lives in memory only; a restart clears it.
    """

    def __init__(self, verifier, max_attempts=2, lockout_sec=30):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.verifier = verifier
        self.max_attempts = max_attempts
        self.lockout_sec = lockout_sec

        self.state = IDLE
        self.attempt_count = 0
        self.seconds_left = 0

    @property
    def locked(self):
        return self.state == LOCKED

    def submit(self, pin):
        if self.state == LOCKED:
            log.debug("PIN submitted during lockout (%d s left), ignored", self.seconds_left)
            return RESULT_IGNORED

        if self.state == GRANTED:
            return RESULT_GRANTED

        if self.verifier(pin):
            self.state = GRANTED
            self.attempt_count = 0
            log.info("Admin PIN accepted")
            return RESULT_GRANTED

        self.attempt_count += 1
        log.warning("Wrong admin PIN, failed attempts: %d", self.attempt_count)

        if self.attempt_count >= self.max_attempts:
            self.state = LOCKED
            self.seconds_left = self.lockout_sec
            log.warning("Too many incorrect attempts, locked for %d s", self.lockout_sec)
            return RESULT_LOCKED_OUT

        return RESULT_DENIED

    def tick(self):
        """One second of lockout countdown. No-op outside LOCKED."""
        if self.state != LOCKED:
            return
        self.seconds_left -= 1
        if self.seconds_left <= 0:
            self.seconds_left = 0
            self.attempt_count = 0
            self.state = IDLE
            log.info("Lockout over")

    def reset(self):
        """Back to IDLE after a granted session; does not shorten a lockout."""
        if self.state == GRANTED:
            self.state = IDLE
            self.attempt_count = 0
