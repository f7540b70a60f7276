#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
main.py – kiosk window (camera preview, recognition, doors, admin tools)

Timers on the Qt thread:
- frame_timer   (~30 ms): grab frame, detect + predict, feed the aggregator
- lockout_timer (1 s):    admin PIN lockout countdown, only while locked

Every 60 accepted frames the aggregator settles on one name; the name,
its permission level and the door lit in the sidebar come from the roster.

Admin Panel -> PIN keypad -> profile editor (job/access edit, roster reset).
Add Face / Delete Face manage images in the dataset folder.
Train Model runs trainer.py as a separate process and reloads the model
when it finishes.

Usage:
    python3 main.py
    python3 main.py --hash-pin 4711    # print salt + hash for config.py
"""

import os
import sys
import signal
import argparse
import logging

import cv2

from PyQt5 import QtCore, QtGui, QtWidgets

from config import CONFIG
from utils_fs import ensure_dirs, reset_csv, setup_logging
from facedb import UNKNOWN, FaceDB, FaceDetector, create_recognizer, find_haar
from roster import RosterStore
from aggregator import RecognitionAggregator
from lockout import LockoutMachine, PinVerifier, hash_pin
from camera_manager import CameraManager
from keypad import KeypadDialog
from editprofile import ProfileEditor
import facemanager
import trainer

log = logging.getLogger(__name__)

DOOR_STYLE = "font-size: 18pt; color: white; border: 2px solid white; padding: 10px;"
DOOR_STYLE_ACTIVE = "font-size: 18pt; color: white; border: 2px solid lime; padding: 10px;"
BUTTON_STYLE = "font-size: 16pt; padding: 10px;"


def build_facedb():
    cascade = CONFIG["cascade_path"] or find_haar()
    detector = FaceDetector(
        cascade,
        scale_factor=CONFIG["cascade_scale_factor"],
        min_neighbors=CONFIG["cascade_min_neighbors"],
        min_size=CONFIG["cascade_min_size"],
        max_size=CONFIG["cascade_max_size"],
    )
    recognizer = create_recognizer(
        CONFIG["lbph_radius"],
        CONFIG["lbph_neighbors"],
        CONFIG["lbph_grid_x"],
        CONFIG["lbph_grid_y"],
        CONFIG["lbph_threshold"],
    )
    return FaceDB(
        detector,
        CONFIG["model_path"],
        CONFIG["labels_path"],
        recognizer=recognizer,
        face_size=CONFIG["face_size"],
    )


#################################
# MAIN WINDOW
#################################
class MainWindow(QtWidgets.QMainWindow):
    def __init__(self):
        super().__init__()
        ensure_dirs(
            CONFIG["dataset_dir"],
            CONFIG["recognizer_dir"],
            CONFIG["textfiles_dir"],
        )
        # event log starts empty on every launch
        reset_csv(CONFIG["event_log_csv"])

        self.facedb = build_facedb()
        self.roster = RosterStore(CONFIG["roster_csv"])
        self.aggregator = RecognitionAggregator(
            self.facedb,
            self.roster,
            event_log_path=CONFIG["event_log_csv"],
            threshold=CONFIG["recognition_threshold"],
            window_size=CONFIG["aggregation_window"],
            on_decision=self.show_decision,
        )
        self.pin_machine = LockoutMachine(
            PinVerifier(
                CONFIG["admin_pin_salt"],
                CONFIG["admin_pin_hash"],
                CONFIG["admin_pin_iterations"],
            ),
            max_attempts=CONFIG["pin_max_attempts"],
            lockout_sec=CONFIG["pin_lockout_sec"],
        )

        self.setWindowTitle("Face Recognition – Door Access")
        if CONFIG["hide_cursor"]:
            self.setCursor(QtCore.Qt.BlankCursor)

        self._build_ui()

        # ========== RUNTIME STATE ==========
        self._frame_busy = False
        self.profile_editor = None
        self.train_process = None

        # Camera
        self.cam = CameraManager(
            CONFIG["camera_index"],
            CONFIG["camera_main_size"][0],
            CONFIG["camera_main_size"][1],
        )

        # Timers
        self.frame_timer = QtCore.QTimer(self)
        self.frame_timer.timeout.connect(self.on_frame_tick)

        self.lockout_timer = QtCore.QTimer(self)
        self.lockout_timer.timeout.connect(self.on_lockout_tick)

        if self.cam.opened:
            self.frame_timer.start(CONFIG["frame_interval_ms"])
        else:
            self.view.setText("Error: Could not open camera.")


    #################################
    # --- LAYOUT ---
    #################################
    def _build_ui(self):
        central = QtWidgets.QWidget()
        self.setCentralWidget(central)
        outer = QtWidgets.QHBoxLayout(central)
        outer.setContentsMargins(10, 10, 10, 10)
        outer.setSpacing(10)

        # 1. door sidebar (left)
        sidebar = QtWidgets.QWidget()
        sidebar.setFixedWidth(250)
        sidebar.setStyleSheet("background-color: #3e3e42;")
        side = QtWidgets.QVBoxLayout(sidebar)

        title = QtWidgets.QLabel("Doors")
        title.setStyleSheet("font-size: 24pt; color: white;")
        title.setAlignment(QtCore.Qt.AlignCenter)
        side.addWidget(title)

        self.door_labels = {}
        for door in CONFIG["doors"]:
            lbl = QtWidgets.QLabel(f"Door {door}")
            lbl.setStyleSheet(DOOR_STYLE)
            lbl.setAlignment(QtCore.Qt.AlignCenter)
            side.addStretch()
            side.addWidget(lbl)
            self.door_labels[door] = lbl
        side.addStretch()
        outer.addWidget(sidebar)

        # 2. camera preview + name / permission (center)
        center = QtWidgets.QVBoxLayout()
        self.view = QtWidgets.QLabel()
        self.view.setAlignment(QtCore.Qt.AlignCenter)
        self.view.setStyleSheet("background:black; color:white;")
        self.view.setSizePolicy(
            QtWidgets.QSizePolicy.Expanding,
            QtWidgets.QSizePolicy.Expanding
        )
        center.addWidget(self.view, 1)

        row = QtWidgets.QHBoxLayout()
        self.lbl_name = QtWidgets.QLabel("Name: ")
        self.lbl_perm = QtWidgets.QLabel("Permission Level: ")
        for lbl in (self.lbl_name, self.lbl_perm):
            lbl.setAlignment(QtCore.Qt.AlignCenter)
            lbl.setStyleSheet("font-size: 24pt;")
            row.addWidget(lbl)
        center.addLayout(row)
        outer.addLayout(center, 1)

        # 3. buttons + training progress (right)
        right = QtWidgets.QVBoxLayout()
        self.btn_admin = QtWidgets.QPushButton("Admin Panel")
        self.btn_add = QtWidgets.QPushButton("Add Face")
        self.btn_delete = QtWidgets.QPushButton("Delete Face")
        self.btn_train = QtWidgets.QPushButton("Train Model")
        for btn in (self.btn_admin, self.btn_add, self.btn_delete, self.btn_train):
            btn.setStyleSheet(BUTTON_STYLE)
            right.addWidget(btn)

        self.train_bar = QtWidgets.QProgressBar()
        self.train_bar.setRange(0, 100)
        self.train_bar.setValue(0)
        self.train_bar.setTextVisible(True)
        right.addWidget(self.train_bar)

        self.lbl_status = QtWidgets.QLabel("")
        self.lbl_status.setWordWrap(True)
        right.addWidget(self.lbl_status)
        right.addStretch()
        outer.addLayout(right)

        self.btn_admin.clicked.connect(self.open_admin_panel)
        self.btn_add.clicked.connect(self.add_face)
        self.btn_delete.clicked.connect(self.delete_face)
        self.btn_train.clicked.connect(self.start_training)


    #################################
    # --- TIMER HELPERS ---
    #################################
    def _stop_timer(self, t: QtCore.QTimer):
        if t.isActive():
            t.stop()

    def pause_frames(self):
        self._stop_timer(self.frame_timer)

    def resume_frames(self):
        if self.cam.opened and not self.frame_timer.isActive():
            self.frame_timer.start(CONFIG["frame_interval_ms"])


    #################################
    # --- decision display ---
    #################################
    def show_decision(self, decision):
        self.lbl_name.setText(f"Name: {decision.name}")
        self.lbl_perm.setText(f"Permission Level: {decision.permission_level}")
        for door, lbl in self.door_labels.items():
            lbl.setStyleSheet(DOOR_STYLE_ACTIVE if door == decision.door_number else DOOR_STYLE)


    #################################
    # --- FRAME TICK (~30 ms) ---
    #################################
    def on_frame_tick(self):
        # a tick that is still running makes the next one a no-op
        if self._frame_busy:
            return
        self._frame_busy = True
        try:
            self._process_frame()
        finally:
            self._frame_busy = False

    def _process_frame(self):
        frame_bgr = self.cam.get_frame_bgr()
        if frame_bgr is None:
            return

        for (x, y, w, h), label, conf in self.facedb.recognize_frame(frame_bgr):
            cv2.rectangle(frame_bgr, (x, y), (x + w, y + h), (0, 255, 0), 2)

            text = UNKNOWN
            if conf > self.aggregator.threshold:
                text = self.facedb.label_name(label)
            self.aggregator.observe(label, conf)

            cv2.putText(
                frame_bgr,
                text,
                (x, y - 5),
                cv2.FONT_HERSHEY_DUPLEX,
                1.0,
                (0, 255, 0),
                1,
            )

        fh, fw = frame_bgr.shape[:2]
        cv2.rectangle(frame_bgr, (0, 0), (fw - 1, fh - 1), (255, 255, 255), 4)

        # BGR -> RGB for Qt
        disp_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        fitted = self._crop_and_scale_fill(disp_rgb, self.view.width(), self.view.height())
        if fitted is None:
            return

        h, w, _ = fitted.shape
        qimg = QtGui.QImage(fitted.data, w, h, 3 * w, QtGui.QImage.Format_RGB888)
        self.view.setPixmap(QtGui.QPixmap.fromImage(qimg))

    def _crop_and_scale_fill(self, src_rgb, target_w, target_h):
        """
        Fill the whole widget without black bars:
          1. crop the middle so aspect == target_w/target_h,
          2. scale to exactly (target_w, target_h).
        """
        if target_w <= 0 or target_h <= 0:
            return None

        sh, sw, _ = src_rgb.shape
        target_aspect = target_w / float(target_h)
        src_aspect = sw / float(sh)

        if src_aspect > target_aspect:
            # too wide -> crop width
            new_sw = min(int(target_aspect * sh), sw)
            x0 = (sw - new_sw) // 2
            cropped = src_rgb[:, x0:x0+new_sw, :]
        else:
            # too tall -> crop height
            new_sh = min(int(sw / target_aspect), sh)
            y0 = (sh - new_sh) // 2
            cropped = src_rgb[y0:y0+new_sh, :, :]

        return cv2.resize(cropped, (target_w, target_h), interpolation=cv2.INTER_LINEAR)


    #################################
    # --- ADMIN PANEL (PIN + profile editor) ---
    #################################
    def open_admin_panel(self):
        if self.profile_editor is not None:
            self.profile_editor.raise_()
            self.profile_editor.activateWindow()
            return

        dlg = KeypadDialog(self.pin_machine, self.lockout_timer, self, title="Admin PIN")
        if dlg.exec() != QtWidgets.QDialog.Accepted:
            return

        # one granted session per PIN entry
        self.pin_machine.reset()

        self.profile_editor = ProfileEditor(
            self.roster,
            CONFIG["dataset_dir"],
            before_rebuild=self.pause_frames,
            after_rebuild=self.resume_frames,
            parent=self,
        )
        self.profile_editor.setAttribute(QtCore.Qt.WA_DeleteOnClose)
        self.profile_editor.closed.connect(self._profile_editor_closed)
        self.profile_editor.show()

    def _profile_editor_closed(self):
        self.profile_editor = None

    def on_lockout_tick(self):
        self.pin_machine.tick()
        if not self.pin_machine.locked:
            self._stop_timer(self.lockout_timer)


    #################################
    # --- dataset images ---
    #################################
    def add_face(self):
        self.pause_frames()
        try:
            facemanager.add_face_dialog(self, CONFIG["dataset_dir"])
        finally:
            self.resume_frames()

    def delete_face(self):
        self.pause_frames()
        try:
            facemanager.delete_face_dialog(self, CONFIG["dataset_dir"])
        finally:
            self.resume_frames()


    #################################
    # --- TRAINING (separate process) ---
    #################################
    def start_training(self):
        if self.train_process is not None:
            return

        proc = QtCore.QProcess(self)
        proc.setProcessChannelMode(QtCore.QProcess.ForwardedChannels)
        proc.finished.connect(self._training_done)
        self.train_process = proc

        # busy indicator while the process runs
        self.train_bar.setRange(0, 0)
        self.btn_train.setEnabled(False)
        self.lbl_status.setText("Training…")

        proc.start(sys.executable, [os.path.abspath(trainer.__file__)])
        if not proc.waitForStarted():
            log.error("Failed to start trainer: %s", proc.errorString())
            self.train_process = None
            proc.deleteLater()
            self.train_bar.setRange(0, 100)
            self.train_bar.setValue(0)
            self.btn_train.setEnabled(True)
            self.lbl_status.setText("Could not start training")

    def _training_done(self, exit_code, exit_status):
        proc, self.train_process = self.train_process, None
        if proc is not None:
            proc.deleteLater()
        self.btn_train.setEnabled(True)
        self.train_bar.setRange(0, 100)

        if exit_status == QtCore.QProcess.NormalExit and exit_code == trainer.EXIT_OK:
            self.train_bar.setValue(100)
            self.lbl_status.setText("Training complete")
            self.facedb.reload()
            self.aggregator.reset()
            return

        self.train_bar.setValue(0)
        if exit_code == trainer.EXIT_EMPTY_CORPUS:
            self.lbl_status.setText("No faces found in the dataset – model unchanged")
        else:
            self.lbl_status.setText(f"Training failed (exit code {exit_code})")
        log.error("Training run ended with exit code %s", exit_code)


    #################################
    # --- shutdown ---
    #################################
    def closeEvent(self, e: QtGui.QCloseEvent):
        self._stop_timer(self.frame_timer)
        self._stop_timer(self.lockout_timer)

        if self.train_process is not None:
            self.train_process.kill()
            self.train_process.waitForFinished(2000)

        self.cam.stop()
        return super().closeEvent(e)


#################################
# MAIN
#################################
def main(argv=None):
    ap = argparse.ArgumentParser(description="Face recognition door access kiosk.")
    ap.add_argument("--hash-pin", metavar="PIN", help="print admin_pin_salt / admin_pin_hash for config.py")
    args = ap.parse_args(argv)

    if args.hash_pin:
        salt = os.urandom(8).hex()
        print(f'"admin_pin_salt": "{salt}",')
        print(f'"admin_pin_hash": "{hash_pin(args.hash_pin, salt, CONFIG["admin_pin_iterations"])}",')
        return 0

    setup_logging(CONFIG["logs_dir"], CONFIG["debug"])

    app = QtWidgets.QApplication(sys.argv[:1])
    win = MainWindow()

    if CONFIG["fullscreen"]:
        win.showFullScreen()
    else:
        win.resize(CONFIG["screen_width"], CONFIG["screen_height"])
        win.show()

    # Ctrl+C in the console
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
