# roster.py
import os
import csv
import logging
import threading
from dataclasses import dataclass
from datetime import datetime

log = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

JOB_STATUSES = ("Manager", "Employee", "Admin")
ACCESS_LEVELS = (1, 2, 3)

DEFAULT_JOB_STATUS = "Employee"
DEFAULT_ACCESS_LEVEL = 1
DEFAULT_DOOR = "1"


class RosterError(ValueError):
    pass


@dataclass
class RosterRecord:
    name: str
    date_enrolled: str = ""
    job_status: str = DEFAULT_JOB_STATUS
    access_level: int = DEFAULT_ACCESS_LEVEL
    door_number: str = ""

    @property
    def enrolled_at(self):
        """date_enrolled as datetime, None if the cell is empty or garbled."""
        try:
            return datetime.strptime(self.date_enrolled, DATE_FORMAT)
        except ValueError:
            return None

    def to_row(self):
        return [self.name, self.date_enrolled, self.job_status,
                str(self.access_level), self.door_number]

    @classmethod
    def from_row(cls, row):
        cells = [c.strip() for c in row] + [""] * (5 - len(row))
        name, date_enrolled, job_status, access, door = cells[:5]

        try:
            access_level = int(access) if access else DEFAULT_ACCESS_LEVEL
        except ValueError:
            log.warning("Roster row %r: bad access level %r, using %d",
                        name, access, DEFAULT_ACCESS_LEVEL)
            access_level = DEFAULT_ACCESS_LEVEL

        return cls(
            name=name,
            date_enrolled=date_enrolled,
            job_status=job_status or DEFAULT_JOB_STATUS,
            access_level=access_level,
            door_number=door,
        )


class RosterStore:
    """
    names.csv, no header, one identity per row:

      name,dateEnrolled,jobStatus,accessLevel,doorNumber
      Alice,2024-03-01 09:12:44,Employee,1,1

    Every write rebuilds the whole table in a temp file and swaps it in
    with os.replace while holding self._lock, so readers see either the
    old table or the new one.
    """

    def __init__(self, csv_path):
        self.csv_path = csv_path
        self._lock = threading.Lock()

    # ---------- reading ----------
    def _read_rows(self):
        if not os.path.exists(self.csv_path):
            log.warning("Roster file not found: %s", self.csv_path)
            return []
        with open(self.csv_path, "r", encoding="utf-8", newline="") as f:
            return [row for row in csv.reader(f) if row and any(c.strip() for c in row)]

    def records(self):
        return [RosterRecord.from_row(r) for r in self._read_rows()]

    def names(self):
        return [r.name for r in self.records()]

    def lookup(self, name):
        """First record whose name equals `name` exactly, or None."""
        for row in self._read_rows():
            if row[0].strip() == name:
                return RosterRecord.from_row(row)
        return None

    # ---------- writing ----------
    def _write_rows(self, rows):
        folder = os.path.dirname(self.csv_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp = self.csv_path + ".tmp"
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f, lineterminator="\n")
            w.writerows(rows)
        os.replace(tmp, self.csv_path)

    def update(self, name, job_status, access_level):
        """
        Set job status and access level of `name`; date and door stay as they are.
        Returns False (file untouched) when nobody with that name is enrolled.
        """
        if job_status not in JOB_STATUSES:
            raise RosterError(f"job status must be one of {JOB_STATUSES}, got {job_status!r}")
        try:
            access_level = int(access_level)
        except (TypeError, ValueError):
            raise RosterError(f"access level must be one of {ACCESS_LEVELS}, got {access_level!r}")
        if access_level not in ACCESS_LEVELS:
            raise RosterError(f"access level must be one of {ACCESS_LEVELS}, got {access_level!r}")

        with self._lock:
            rows = self._read_rows()
            modified = False
            out = []
            for row in rows:
                if not modified and row[0].strip() == name:
                    rec = RosterRecord.from_row(row)
                    rec.job_status = job_status
                    rec.access_level = access_level
                    row = rec.to_row()
                    modified = True
                out.append(row)

            if not modified:
                log.warning("No roster entry for %r, nothing updated", name)
                return False

            self._write_rows(out)

        log.info("Roster updated: %s -> %s, level %d", name, job_status, access_level)
        return True

    def rebuild_from_enrollment_tree(self, dataset_dir):
        """
        Replace the whole table with one default row per immediate
        subdirectory of dataset_dir. Manual edits are lost.
        Returns the number of rows written.
        """
        if not os.path.isdir(dataset_dir):
            log.error("Dataset folder does not exist: %s", dataset_dir)
            return 0

        rows = []
        for entry in sorted(os.scandir(dataset_dir), key=lambda e: e.name):
            if not entry.is_dir():
                continue
            mtime = datetime.fromtimestamp(entry.stat().st_mtime)
            rec = RosterRecord(
                name=entry.name,
                date_enrolled=mtime.strftime(DATE_FORMAT),
                job_status=DEFAULT_JOB_STATUS,
                access_level=DEFAULT_ACCESS_LEVEL,
                door_number=DEFAULT_DOOR,
            )
            rows.append(rec.to_row())

        with self._lock:
            self._write_rows(rows)

        log.info("Roster rebuilt from %s: %d entries", dataset_dir, len(rows))
        return len(rows)
