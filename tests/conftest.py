import os

# Run Qt headless when no display is available (CI / containers).
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
