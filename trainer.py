#!/usr/bin/env python3
"""
trainer.py – builds the LBPH model and label map from the dataset tree.

    dataset/<name>/*.jpg   one folder per enrolled person

For every folder (sorted by name) the next label 0,1,2,... is assigned.
Each image is read, turned gray, run through the Haar detector; the first
face found is resized to face_size and becomes one training sample.
Unreadable files and images without a face are skipped with a warning.

Nothing is written unless at least one sample was collected, so a failed
run leaves the previous model and labels.txt as they were.

Exit codes:
    0  model + labels written
    1  bad paths / unreadable dataset / training error
    2  no usable face in the whole dataset

Usage:
    python3 trainer.py [--dataset DIR] [--cascade XML] [--model XML] [--labels TXT]
"""

import os
import sys
import argparse
import logging
from collections import namedtuple

import cv2
import numpy as np

from config import CONFIG
from facedb import FaceDetector, create_recognizer, find_haar, write_label_map
from utils_fs import setup_logging

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_EMPTY_CORPUS = 2

TrainingReport = namedtuple("TrainingReport", ["names", "samples", "samples_per_label"])


class CorpusError(Exception):
    pass


class EmptyCorpusError(CorpusError):
    pass


def _check_output_dir(path, what):
    folder = os.path.dirname(os.path.abspath(path))
    try:
        os.makedirs(folder, exist_ok=True)
    except OSError as e:
        raise CorpusError(f"{what} folder {folder} is not usable: {e}") from e


def validate_paths(dataset_dir, cascade_path, model_path, labels_path):
    if not os.path.isdir(dataset_dir):
        raise CorpusError(f"dataset folder not found: {dataset_dir}")
    if not os.path.isfile(cascade_path):
        raise CorpusError(f"cascade file not found: {cascade_path}")
    _check_output_dir(model_path, "model")
    _check_output_dir(labels_path, "labels")


def _face_sample(image_path, detector, face_size):
    """Gray face patch from one image file, or None (with a warning)."""
    img = cv2.imread(image_path)
    if img is None:
        log.warning("Could not read image %s", image_path)
        return None

    gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    faces = detector.detect_faces(gray)
    if len(faces) == 0:
        log.warning("No face detected in %s", image_path)
        return None

    # only the first face counts, group photos are not split
    (x, y, w, h) = faces[0]
    roi = gray[y:y+h, x:x+w]
    return cv2.resize(roi, tuple(face_size), interpolation=cv2.INTER_LINEAR)


def collect_samples(dataset_dir, detector, face_size=(100, 100), progress_callback=None):
    """
    Walk dataset_dir and return (images, labels, names):
      images[i] – gray face patch, labels[i] – its label,
      names[label] – folder name of that label.
    Folders with no usable image still get a label.
    """
    try:
        people = sorted(
            (e for e in os.scandir(dataset_dir) if e.is_dir()),
            key=lambda e: e.name,
        )
    except OSError as e:
        raise CorpusError(f"cannot list dataset folder {dataset_dir}: {e}") from e

    images, labels, names = [], [], []
    n = len(people)
    for label, person in enumerate(people):
        names.append(person.name)
        log.info("Processing person: %s (label %d)", person.name, label)

        try:
            files = sorted(
                (e for e in os.scandir(person.path) if e.is_file()),
                key=lambda e: e.name,
            )
        except OSError as e:
            raise CorpusError(f"cannot list {person.path}: {e}") from e

        kept = 0
        for f in files:
            face = _face_sample(f.path, detector, face_size)
            if face is None:
                continue
            images.append(face)
            labels.append(label)
            kept += 1

        if kept == 0:
            log.warning("No usable face for %s", person.name)
        if progress_callback:
            progress_callback(label + 1, n)

    return images, labels, names


def _swap_in(model_tmp, model_path, labels_tmp, labels_path):
    """
    Move the new label map, then the new model into place. If the model
    cannot be moved the previous label map is put back, so the pair on
    disk always belongs together.
    """
    previous = None
    if os.path.isfile(labels_path):
        with open(labels_path, "rb") as f:
            previous = f.read()

    os.replace(labels_tmp, labels_path)
    try:
        os.replace(model_tmp, model_path)
    except OSError:
        if previous is None:
            os.remove(labels_path)
        else:
            with open(labels_path, "wb") as f:
                f.write(previous)
        raise


def train(dataset_dir, cascade_path, model_path, labels_path,
          face_size=(100, 100), detector=None, recognizer=None, progress_callback=None):
    """
    Full training run. Raises CorpusError / EmptyCorpusError on failure,
    returns TrainingReport on success.
    """
    validate_paths(dataset_dir, cascade_path, model_path, labels_path)

    if detector is None:
        detector = FaceDetector(
            cascade_path,
            scale_factor=CONFIG["cascade_scale_factor"],
            min_neighbors=CONFIG["cascade_min_neighbors"],
            min_size=CONFIG["cascade_min_size"],
            max_size=CONFIG["cascade_max_size"],
        )

    images, labels, names = collect_samples(dataset_dir, detector, face_size, progress_callback)

    if not images:
        raise EmptyCorpusError(
            f"no training data found in {dataset_dir} ({len(names)} folder(s), 0 faces); "
            "check the dataset folder structure"
        )

    if recognizer is None:
        recognizer = create_recognizer(
            CONFIG["lbph_radius"],
            CONFIG["lbph_neighbors"],
            CONFIG["lbph_grid_x"],
            CONFIG["lbph_grid_y"],
            CONFIG["lbph_threshold"],
        )

    log.info("Training the recognizer with %d face(s)...", len(images))
    model_tmp = model_path + ".tmp.xml"
    labels_tmp = labels_path + ".tmp"
    try:
        recognizer.train(images, np.array(labels, dtype=np.int32))
        recognizer.write(model_tmp)
        write_label_map(labels_tmp, names)
        _swap_in(model_tmp, model_path, labels_tmp, labels_path)
    except (cv2.error, OSError) as e:
        for tmp in (model_tmp, labels_tmp):
            if os.path.isfile(tmp):
                os.remove(tmp)
        raise CorpusError(f"training failed: {e}") from e

    log.info("Training complete. Model saved at %s, labels at %s", model_path, labels_path)

    per_label = [labels.count(i) for i in range(len(names))]
    return TrainingReport(names=names, samples=len(images), samples_per_label=per_label)


def log_progress(done, total):
    log.info("Progress: %d/%d folder(s) (%d%%)", done, total, done * 100 // total)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Train the LBPH face model from the dataset folder.")
    ap.add_argument("--dataset", default=CONFIG["dataset_dir"], help="one sub-folder per person")
    ap.add_argument("--cascade", default=CONFIG["cascade_path"], help="Haar cascade XML")
    ap.add_argument("--model", default=CONFIG["model_path"], help="output model (.xml)")
    ap.add_argument("--labels", default=CONFIG["labels_path"], help="output label map (.txt)")
    args = ap.parse_args(argv)

    setup_logging(CONFIG["logs_dir"], CONFIG["debug"])
    cascade = args.cascade or find_haar()

    log.info("Dataset path: %s", args.dataset)
    log.info("Cascade path: %s", cascade)
    log.info("Model path: %s", args.model)
    log.info("Labels path: %s", args.labels)

    try:
        report = train(args.dataset, cascade, args.model, args.labels,
                       face_size=CONFIG["face_size"], progress_callback=log_progress)
    except EmptyCorpusError as e:
        log.error("%s", e)
        return EXIT_EMPTY_CORPUS
    except CorpusError as e:
        log.error("%s", e)
        return EXIT_FAILED

    log.info("%d person(s), %d sample(s)", len(report.names), report.samples)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
