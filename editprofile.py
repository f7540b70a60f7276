# editprofile.py
# Admin panel: roster list, profile details, job/access edit, roster reset
import logging

from PyQt5 import QtCore, QtGui, QtWidgets

import facemanager
from roster import ACCESS_LEVELS, JOB_STATUSES, RosterError

log = logging.getLogger(__name__)


class ProfileEditor(QtWidgets.QWidget):
    """
    Opened after a granted admin PIN. `before_rebuild` / `after_rebuild`
    let the main window pause frame processing while the roster file is
    being replaced.
    """

    closed = QtCore.pyqtSignal()

    def __init__(self, roster, dataset_dir, before_rebuild=None, after_rebuild=None, parent=None):
        super().__init__(parent, QtCore.Qt.Window)
        self.roster = roster
        self.dataset_dir = dataset_dir
        self.before_rebuild = before_rebuild
        self.after_rebuild = after_rebuild
        self.current_name = None

        self.setWindowTitle("Edit Profile")
        self.setFixedSize(900, 600)
        self.setStyleSheet("background-color: #121212; color: #ffffff;")

        outer = QtWidgets.QHBoxLayout(self)
        outer.setSpacing(10)

        # names (left)
        left = QtWidgets.QVBoxLayout()
        left.addWidget(QtWidgets.QLabel("<h2>Names</h2>"))
        self.list_names = QtWidgets.QListWidget()
        self.list_names.setFixedWidth(220)
        self.list_names.currentTextChanged.connect(self.load_profile)
        left.addWidget(self.list_names, 1)
        outer.addLayout(left)

        # details (middle)
        middle = QtWidgets.QVBoxLayout()
        self.lbl_image = QtWidgets.QLabel()
        self.lbl_image.setFixedSize(320, 320)
        self.lbl_image.setAlignment(QtCore.Qt.AlignCenter)
        self.lbl_image.setStyleSheet("background:#1e1e1e;")
        middle.addWidget(self.lbl_image, 0, QtCore.Qt.AlignHCenter)

        self.lbl_name = QtWidgets.QLabel("Name: ")
        self.lbl_date = QtWidgets.QLabel("Date Joined: ")
        self.lbl_door = QtWidgets.QLabel("Door: ")
        for lbl in (self.lbl_name, self.lbl_date, self.lbl_door):
            lbl.setStyleSheet("font-size:16pt;")
            middle.addWidget(lbl)

        form = QtWidgets.QFormLayout()
        self.combo_job = QtWidgets.QComboBox()
        self.combo_job.addItems(JOB_STATUSES)
        self.combo_access = QtWidgets.QComboBox()
        self.combo_access.addItems([str(a) for a in ACCESS_LEVELS])
        form.addRow("Job Status:", self.combo_job)
        form.addRow("Access Level:", self.combo_access)
        middle.addLayout(form)
        middle.addStretch()
        outer.addLayout(middle, 1)

        # settings (right)
        right = QtWidgets.QVBoxLayout()
        right.addWidget(QtWidgets.QLabel("<h2>Settings</h2>"))

        self.btn_save = QtWidgets.QPushButton("Save Access Level")
        self.btn_save.clicked.connect(self.on_save)
        right.addWidget(self.btn_save)

        right.addStretch()

        btn_reset = QtWidgets.QPushButton("Reset Roster")
        btn_reset.clicked.connect(self.on_reset_roster)
        right.addWidget(btn_reset)

        btn_back = QtWidgets.QPushButton("Back")
        btn_back.clicked.connect(self.close)
        right.addWidget(btn_back)
        outer.addLayout(right)

        self.refresh_names()

    def refresh_names(self):
        self.list_names.clear()
        self.list_names.addItems(self.roster.names())
        if self.list_names.count() > 0:
            self.list_names.setCurrentRow(0)
        else:
            self.load_profile("")

    def load_profile(self, name):
        self.current_name = None
        rec = self.roster.lookup(name) if name else None
        self.btn_save.setEnabled(rec is not None)
        if rec is None:
            self.lbl_name.setText("Name: ")
            self.lbl_date.setText("Date Joined: ")
            self.lbl_door.setText("Door: ")
            self.lbl_image.clear()
            return

        self.current_name = rec.name
        self.lbl_name.setText(f"Name: {rec.name}")
        self.lbl_date.setText(f"Date Joined: {rec.date_enrolled}")
        self.lbl_door.setText(f"Door: {rec.door_number}")
        if rec.job_status in JOB_STATUSES:
            self.combo_job.setCurrentText(rec.job_status)
        self.combo_access.setCurrentText(str(rec.access_level))

        img = facemanager.first_image(self.dataset_dir, rec.name)
        if img:
            pix = QtGui.QPixmap(img).scaled(
                320, 320, QtCore.Qt.KeepAspectRatio, QtCore.Qt.SmoothTransformation
            )
            self.lbl_image.setPixmap(pix)
        else:
            self.lbl_image.setText("no picture")

    def on_save(self):
        if not self.current_name:
            return
        try:
            ok = self.roster.update(
                self.current_name,
                self.combo_job.currentText(),
                int(self.combo_access.currentText()),
            )
        except RosterError as e:
            QtWidgets.QMessageBox.warning(self, "Edit Profile", str(e))
            return

        if not ok:
            QtWidgets.QMessageBox.warning(
                self, "Edit Profile", f"No roster entry found for {self.current_name}."
            )
            return
        self.load_profile(self.current_name)

    def on_reset_roster(self):
        answer = QtWidgets.QMessageBox.question(
            self,
            "Reset Roster",
            "Rebuild the roster from the dataset folders?\n"
            "All job / access / door edits will be lost.",
        )
        if answer != QtWidgets.QMessageBox.Yes:
            return

        if self.before_rebuild:
            self.before_rebuild()
        try:
            n = self.roster.rebuild_from_enrollment_tree(self.dataset_dir)
        finally:
            if self.after_rebuild:
                self.after_rebuild()

        self.refresh_names()
        QtWidgets.QMessageBox.information(self, "Reset Roster", f"Roster rebuilt: {n} entries.")

    def closeEvent(self, e: QtGui.QCloseEvent):
        self.closed.emit()
        return super().closeEvent(e)
