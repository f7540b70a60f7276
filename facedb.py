# facedb.py
import os
import logging

import cv2
import numpy as np

log = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_HAAR_FILE = "haarcascade_frontalface_default.xml"


def find_haar():
    """Find haarcascade_frontalface_default.xml in the usual locations."""
    candidates = []
    if hasattr(cv2, "data") and hasattr(cv2.data, "haarcascades"):
        candidates.append(cv2.data.haarcascades)
    candidates += [
        "cascades/",
        "/usr/share/opencv4/haarcascades/",
        "/usr/share/opencv/haarcascades/",
        "/usr/local/share/opencv4/haarcascades/",
    ]
    for base in candidates:
        p = os.path.join(base, _HAAR_FILE)
        if os.path.exists(p):
            return p
    return _HAAR_FILE  # fallback: current directory


def create_recognizer(radius=1, neighbors=10, grid_x=8, grid_y=8, threshold=100.0):
    """LBPH model (cv2.face comes with opencv-contrib-python)."""
    return cv2.face.LBPHFaceRecognizer_create(radius, neighbors, grid_x, grid_y, threshold)


#################################
# label map: "label name" per line
#################################
def load_label_map(path):
    """
    Returns {label: name}. A missing file gives an empty map,
    malformed lines are skipped.
    """
    labels = {}
    if not os.path.exists(path):
        log.warning("Label map not found: %s", path)
        return labels

    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            parts = line.split(None, 1)
            if len(parts) != 2:
                if line.strip():
                    log.warning("%s:%d: malformed label line %r", path, lineno, line.rstrip())
                continue
            try:
                labels[int(parts[0])] = parts[1].strip()
            except ValueError:
                log.warning("%s:%d: label is not an integer: %r", path, lineno, parts[0])
    return labels


def write_label_map(path, names):
    """
    names[i] gets label i. The previous file is replaced as a whole,
    never merged, so stale labels cannot survive a run.
    """
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        for label, name in enumerate(names):
            f.write(f"{label} {name}\n")
    os.replace(tmp, path)


class FaceDetector:
    """Haar cascade on a grayscale image -> [(x,y,w,h), ...]."""

    def __init__(self, cascade_path, scale_factor=1.3, min_neighbors=5,
                 min_size=(60, 60), max_size=(350, 350)):
        self.cascade_path = cascade_path
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = tuple(min_size)
        self.max_size = tuple(max_size)

        self.cascade = cv2.CascadeClassifier(cascade_path)
        if self.cascade.empty():
            log.error("Error loading cascade: %s", cascade_path)

    def detect_faces(self, gray):
        if self.cascade.empty():
            return []
        faces = self.cascade.detectMultiScale(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            flags=cv2.CASCADE_SCALE_IMAGE,
            minSize=self.min_size,
            maxSize=self.max_size,
        )
        return [(int(x), int(y), int(w), int(h)) for (x, y, w, h) in faces]


class FaceDB:
    """
    Identity capability used by the live kiosk.

    Files:

    recognizer/embeddings.xml – LBPH model written by trainer.py
    recognizer/labels.txt     – "label name" per line, labels 0..N-1

    In RAM:
      self.labels[label] = name
    """

    def __init__(self, detector, model_path, labels_path, recognizer=None, face_size=None):
        self.detector = detector
        self.face_size = tuple(face_size) if face_size else None
        self.model_path = model_path
        self.labels_path = labels_path
        self.recognizer = recognizer
        self.labels = {}
        self.is_trained = False
        self._warned_untrained = False
        self.reload()

    def reload(self):
        """Re-read model and labels, e.g. after a training run finished."""
        self.labels = load_label_map(self.labels_path)
        self.is_trained = False
        self._warned_untrained = False

        if not os.path.exists(self.model_path):
            log.warning("Model not found: %s (recognition disabled until trained)", self.model_path)
            return

        if self.recognizer is None:
            self.recognizer = create_recognizer()
        try:
            self.recognizer.read(self.model_path)
        except cv2.error as e:
            log.error("Error loading model %s: %s", self.model_path, e)
            return

        self.is_trained = True
        log.info("Model loaded: %s (%d labels)", self.model_path, len(self.labels))

    # ---------- capability contract ----------
    def detect_faces(self, gray):
        return self.detector.detect_faces(gray)

    def predict(self, face_gray):
        """Returns (label, confidence); (-1, 0.0) while no model is loaded."""
        if not self.is_trained:
            if not self._warned_untrained:
                log.warning("predict() called without a trained model")
                self._warned_untrained = True
            return -1, 0.0
        label, confidence = self.recognizer.predict(face_gray)
        return int(label), float(confidence)

    def label_name(self, label):
        return self.labels.get(label, UNKNOWN)

    # ---------- frame helper ----------
    def recognize_frame(self, frame_bgr):
        """
        Returns [((x,y,w,h), label, confidence), ...]
        for every face the detector finds in the frame.
        """
        gray = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2GRAY)
        results = []
        for (x, y, w, h) in self.detect_faces(gray):
            roi = np.ascontiguousarray(gray[y:y+h, x:x+w])
            if self.face_size:
                roi = cv2.resize(roi, self.face_size, interpolation=cv2.INTER_LINEAR)
            label, conf = self.predict(roi)
            results.append(((x, y, w, h), label, conf))
        return results
