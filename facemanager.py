# facemanager.py
# Adding / deleting enrollment images inside the dataset folder
import os
import shutil
import logging

from PyQt5 import QtWidgets

log = logging.getLogger(__name__)

IMAGE_EXTS = (".png", ".jpg", ".jpeg", ".bmp", ".xpm")
IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.xpm)"


def _inside(dataset_dir, path):
    root = os.path.realpath(dataset_dir)
    p = os.path.realpath(path)
    return os.path.commonpath([root, p]) == root and p != root


def add_images(dataset_dir, identity_dir, files):
    """
    Copy `files` into identity_dir (a folder inside dataset_dir, created if
    needed). A file with the same name is replaced. Returns how many copied.
    """
    if not _inside(dataset_dir, identity_dir):
        raise ValueError(f"{identity_dir} is not a folder inside {dataset_dir}")
    os.makedirs(identity_dir, exist_ok=True)

    copied = 0
    for src in files:
        dst = os.path.join(identity_dir, os.path.basename(src))
        try:
            if os.path.exists(dst):
                os.remove(dst)
            shutil.copyfile(src, dst)
        except OSError as e:
            log.warning("Failed to copy %s to %s: %s", src, dst, e)
            continue
        log.info("Copied %s to %s", src, dst)
        copied += 1
    return copied


def delete_images(dataset_dir, files):
    """Remove the given files; each must be inside dataset_dir. Returns how many removed."""
    for p in files:
        if not _inside(dataset_dir, p):
            raise ValueError(f"{p} is not inside {dataset_dir}")

    deleted = 0
    for p in files:
        if not os.path.exists(p):
            continue
        try:
            os.remove(p)
        except OSError as e:
            log.warning("Failed to delete %s: %s", p, e)
            continue
        log.info("Deleted %s", p)
        deleted += 1
    return deleted


def first_image(dataset_dir, name):
    """First image (by file name) of one person, None when there is none."""
    folder = os.path.join(dataset_dir, name)
    if not os.path.isdir(folder):
        return None
    for fname in sorted(os.listdir(folder)):
        if fname.lower().endswith(IMAGE_EXTS):
            return os.path.join(folder, fname)
    return None


#################################
# Qt dialogs
#################################
def add_face_dialog(parent, dataset_dir):
    files, _ = QtWidgets.QFileDialog.getOpenFileNames(
        parent, "Select one or more images to add", "", IMAGE_FILTER
    )
    if not files:
        log.debug("No images selected.")
        return 0

    folder = QtWidgets.QFileDialog.getExistingDirectory(
        parent,
        "Select or create a folder in the dataset directory",
        dataset_dir,
        QtWidgets.QFileDialog.ShowDirsOnly | QtWidgets.QFileDialog.DontResolveSymlinks,
    )
    if not folder:
        log.debug("No folder selected.")
        return 0

    try:
        n = add_images(dataset_dir, folder, files)
    except ValueError:
        QtWidgets.QMessageBox.warning(
            parent, "Invalid Folder",
            f"Please select or create a folder inside '{dataset_dir}'.",
        )
        return 0

    QtWidgets.QMessageBox.information(
        parent, "Add Face", f"Successfully added {n} image(s) to:\n{folder}"
    )
    return n


def delete_face_dialog(parent, dataset_dir):
    folder = QtWidgets.QFileDialog.getExistingDirectory(
        parent,
        "Select a folder in the dataset to delete images from",
        dataset_dir,
        QtWidgets.QFileDialog.ShowDirsOnly | QtWidgets.QFileDialog.DontResolveSymlinks,
    )
    if not folder:
        return 0
    if not _inside(dataset_dir, folder):
        QtWidgets.QMessageBox.warning(
            parent, "Invalid Folder", f"Please select a folder inside '{dataset_dir}'."
        )
        return 0

    files, _ = QtWidgets.QFileDialog.getOpenFileNames(
        parent, "Select one or more images to delete", folder, IMAGE_FILTER
    )
    if not files:
        return 0

    try:
        n = delete_images(dataset_dir, files)
    except ValueError:
        QtWidgets.QMessageBox.warning(
            parent, "Invalid Selection", f"Only images inside '{dataset_dir}' can be deleted."
        )
        return 0

    QtWidgets.QMessageBox.information(
        parent, "Delete Face", f"Successfully deleted {n} image(s) from:\n{folder}"
    )
    return n
