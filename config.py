# config.py
# Global application configuration

CONFIG = {
    # main window
    "screen_width": 1400,
    "screen_height": 800,
    "fullscreen": False,
    "hide_cursor": False,

    # Camera:
    # index passed to cv2.VideoCapture, requested capture size (W,H)
    "camera_index": 0,
    "camera_main_size": (1280, 720),

    # frame processing tick (detect + predict + aggregate)
    "frame_interval_ms": 30,

    # --- recognition
    # LBPH confidence must be strictly greater than this to count the frame
    "recognition_threshold": 7.0,
    # frames collected before one stabilized decision
    "aggregation_window": 60,
    # canonical face patch for training and prediction (W,H)
    "face_size": (100, 100),

    # Haar cascade (None -> look for haarcascade_frontalface_default.xml)
    "cascade_path": None,
    "cascade_scale_factor": 1.3,
    "cascade_min_neighbors": 5,
    "cascade_min_size": (60, 60),
    "cascade_max_size": (350, 350),

    # LBPH recognizer
    "lbph_radius": 1,
    "lbph_neighbors": 10,
    "lbph_grid_x": 8,
    "lbph_grid_y": 8,
    "lbph_threshold": 100.0,

    # --- admin PIN
    # strikes before lockout, lockout length in seconds
    "pin_max_attempts": 2,
    "pin_lockout_sec": 30,
    # PBKDF2-SHA256 of the PIN; regenerate with: faceaccess --hash-pin NNNN
    "admin_pin_salt": "6b1f3c9e2a7d4058",
    "admin_pin_hash": "8f0870472e4a9f15f73a014ebcbaa9e45ccc0484e80e84d63587564ca0a2bc3c",
    "admin_pin_iterations": 100000,

    # door indicators in the sidebar
    "doors": ("1", "2", "3"),

    # data files
    "dataset_dir": "dataset",
    "recognizer_dir": "recognizer",
    "model_path": "recognizer/embeddings.xml",
    "labels_path": "recognizer/labels.txt",
    "textfiles_dir": "textfiles",
    "roster_csv": "textfiles/names.csv",
    "event_log_csv": "textfiles/framedata.csv",
    "logs_dir": "logs",

    "debug": False,
}
