# aggregator.py
import logging
from collections import Counter, namedtuple

from facedb import UNKNOWN
from utils_fs import log_csv

log = logging.getLogger(__name__)

Decision = namedtuple("Decision", ["name", "permission_level", "door_number", "count"])


class RecognitionAggregator:
    """
    Turns per-frame (label, confidence) guesses into one decision per window.

    - a frame counts only if confidence > threshold; its label is resolved
      to a name through capability.label_name() and buffered
    - when the buffer holds `window_size` names the most frequent one wins;
      on a tie the name that appeared first in the window wins
    - a winning "Unknown" is dropped silently (no log row, no decision) so
      it cannot overwrite the identity already on screen
    - otherwise "name,count" goes to the event log and the roster supplies
      permission level + door; a roster miss still yields a decision with
      "Unknown" / "" so the display can reset its door indicators
    - the buffer is emptied after every evaluation
    """

    def __init__(self, capability, roster, event_log_path=None,
                 threshold=7.0, window_size=60, on_decision=None):
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self.capability = capability
        self.roster = roster
        self.event_log_path = event_log_path
        self.threshold = float(threshold)
        self.window_size = int(window_size)
        self.on_decision = on_decision
        self._window = []

    @property
    def pending(self):
        return len(self._window)

    def reset(self):
        self._window = []

    def observe(self, label, confidence):
        """Feed one frame; returns a Decision when this frame closed a window."""
        if confidence <= self.threshold:
            return None

        self._window.append(self.capability.label_name(label))
        if len(self._window) < self.window_size:
            return None

        window, self._window = self._window, []
        return self._evaluate(window)

    def _evaluate(self, window):
        # Counter keeps first-seen order and most_common() sorts stably,
        # so ties resolve to the earliest name in the window
        name, count = Counter(window).most_common(1)[0]

        if name == UNKNOWN:
            log.debug("Window dominated by Unknown (%d/%d), no update", count, len(window))
            return None

        if self.event_log_path:
            try:
                log_csv(self.event_log_path, [name, count])
            except OSError as e:
                log.error("Cannot append to event log %s: %s", self.event_log_path, e)

        rec = self.roster.lookup(name)
        if rec is None:
            log.warning("%s recognized but not in roster", name)
            decision = Decision(name, UNKNOWN, "", count)
        else:
            decision = Decision(name, str(rec.access_level), rec.door_number, count)

        log.info("Decision: %s (%d/%d) level=%s door=%s",
                 name, count, len(window), decision.permission_level, decision.door_number or "-")

        if self.on_decision is not None:
            self.on_decision(decision)
        return decision
