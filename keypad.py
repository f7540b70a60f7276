from PyQt5 import QtCore, QtWidgets

import lockout


class KeypadDialog(QtWidgets.QDialog):
    """
    Numeric PIN pad in front of the admin panel.

    Every OK press goes to the LockoutMachine. While it is locked the OK
    button stays enabled: presses are accepted and shown but the machine
    ignores them. The 1 s countdown timer belongs to the main window (it
    ticks the machine even after this dialog is closed); the dialog only
    starts it and repaints on each timeout. accept() is only reached on a
    granted PIN.
    """

    def __init__(self, machine, countdown_timer, parent=None, title="Enter PIN"):
        super().__init__(parent)
        self.machine = machine
        self.countdown_timer = countdown_timer

        # modal overlay without frame
        self.setModal(True)
        self.setWindowTitle(title)
        self.setWindowFlags(
            QtCore.Qt.FramelessWindowHint
            | QtCore.Qt.Dialog
        )
        self.setStyleSheet("background-color: #121212; color: white;")

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        # title bar with X
        topbar = QtWidgets.QHBoxLayout()

        lbl = QtWidgets.QLabel(title)
        lbl.setAlignment(QtCore.Qt.AlignCenter)
        lbl.setStyleSheet("font-size:24px; font-weight:600; color:white;")

        btn_close = QtWidgets.QPushButton("X")
        btn_close.setFixedSize(48, 48)
        btn_close.setStyleSheet(
            "font-size:24px; font-weight:700; border-radius:12px; "
            "background:#550000; color:white;"
        )
        btn_close.setAutoDefault(False)
        btn_close.clicked.connect(self.reject)

        topbar.addWidget(lbl, 1)
        topbar.addWidget(btn_close, 0, QtCore.Qt.AlignRight)
        layout.addLayout(topbar)

        self.lbl_warning = QtWidgets.QLabel("This is a protected area, please enter the PIN.")
        self.lbl_warning.setAlignment(QtCore.Qt.AlignCenter)
        self.lbl_warning.setWordWrap(True)
        self.lbl_warning.setStyleSheet("font-size:18px; color:white;")
        layout.addWidget(self.lbl_warning)

        # PIN field
        self.edit = QtWidgets.QLineEdit()
        self.edit.setEchoMode(QtWidgets.QLineEdit.Password)
        self.edit.setAlignment(QtCore.Qt.AlignCenter)
        self.edit.setFixedHeight(60)
        self.edit.setStyleSheet(
            "font-size:32px; padding:8px; border-radius:12px; "
            "background:#222; color:white;"
        )
        self.edit.returnPressed.connect(self.submit)
        layout.addWidget(self.edit)

        # numeric pad
        grid = QtWidgets.QGridLayout()
        grid.setSpacing(8)

        btnstyle = (
            "font-size:26px; padding:16px; border-radius:16px; "
            "background:#333; color:white;"
        )

        keys = [
            ("1", 0, 0), ("2", 0, 1), ("3", 0, 2),
            ("4", 1, 0), ("5", 1, 1), ("6", 1, 2),
            ("7", 2, 0), ("8", 2, 1), ("9", 2, 2),
            ("←", 3, 0), ("0", 3, 1), ("OK", 3, 2),
        ]

        for text, row, col in keys:
            btn = QtWidgets.QPushButton(text)
            btn.setStyleSheet(btnstyle)
            btn.setAutoDefault(False)
            # x=text bound at definition time, not at click time
            btn.clicked.connect(lambda _, x=text: self.on_btn(x))
            grid.addWidget(btn, row, col)

        layout.addLayout(grid)

        self.countdown_timer.timeout.connect(self.on_countdown_tick)

        self.resize(460, 680)

        # a lockout from an earlier dialog may still be running
        if self.machine.locked:
            self._show_locked()

    def on_btn(self, t: str):
        if t == "OK":
            self.submit()
        elif t == "←":
            self.edit.setText(self.edit.text()[:-1])
        else:
            self.edit.setText(self.edit.text() + t)

    def submit(self):
        pin = self.edit.text()
        self.edit.clear()
        result = self.machine.submit(pin)

        if result == lockout.RESULT_GRANTED:
            self.accept()
        elif result == lockout.RESULT_DENIED:
            self._set_warning(
                f"Incorrect PIN! Try again. (failed attempts: {self.machine.attempt_count})",
                "#ff5555",
            )
        elif result == lockout.RESULT_LOCKED_OUT:
            self._show_locked()
            self.countdown_timer.start(1000)
        else:
            # IGNORED: still locked, countdown unchanged
            self._show_locked()

    def on_countdown_tick(self):
        # the main window already ticked the machine for this timeout
        if self.machine.locked:
            self._show_locked()
        else:
            self._set_warning("You may try again.", "white")

    def _show_locked(self):
        self._set_warning(
            "Too many incorrect attempts.\n"
            f"Time remaining: {self.machine.seconds_left} seconds",
            "#ff5555",
        )

    def _set_warning(self, text, color):
        self.lbl_warning.setText(text)
        self.lbl_warning.setStyleSheet(f"font-size:18px; color:{color};")

    def done(self, r):
        self.countdown_timer.timeout.disconnect(self.on_countdown_tick)
        super().done(r)
