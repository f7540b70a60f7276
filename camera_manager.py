import logging

import cv2

log = logging.getLogger(__name__)


class CameraManager:
    """
    cv2.VideoCapture wrapper. Frames come out as BGR numpy arrays (H,W,3);
    conversion to RGB happens only right before display.
    `opened` is False when the device is missing, get_frame_bgr() then
    returns None and the kiosk keeps running without a picture.
    """

    def __init__(self, index, width, height):
        self.index = index
        self.cap = cv2.VideoCapture(index)
        self.opened = self.cap.isOpened()
        if not self.opened:
            log.error("Could not open camera %s", index)
            return
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

    def get_frame_bgr(self):
        if not self.opened:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            log.debug("Blank frame grabbed")
            return None
        return frame

    def stop(self):
        try:
            self.cap.release()
        except cv2.error as e:
            log.warning("Camera release failed: %s", e)
