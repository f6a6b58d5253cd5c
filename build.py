import PyInstaller.__main__
import os
import shutil
from pathlib import Path


def build():
    BASE_DIR = Path(__file__).parent.absolute()
    SRC_DIR = BASE_DIR / "src"
    FONT_DIR = BASE_DIR / "assets" / "fonts"

    # Platform specific separator
    sep = ";" if os.name == 'nt' else ":"

    hiddenimports = [
        "PyQt6.QtCore",
        "PyQt6.QtGui",
    ]

    args = [
        str(SRC_DIR / "main.py"), # Entry point
        "--name=MatrixCut",
        "--noconfirm",
        "--clean",
        "--console", # batch exporter, progress goes to stdout
        f"--paths={SRC_DIR}",
    ]

    # Title font is staged into the engine workspace at render time
    if FONT_DIR.is_dir():
        args.append(f"--add-data={FONT_DIR}{sep}assets/fonts")
    else:
        print(f"Warning: {FONT_DIR} not found, titles will need --font at runtime")

    # Bundle ffmpeg/ffprobe if they are installed
    for tool in ("ffmpeg", "ffprobe"):
        tool_path = shutil.which(tool)
        if tool_path:
            args.append(f"--add-binary={tool_path}{sep}.")
        else:
            print(f"Warning: {tool} not found on PATH, it will not be bundled")

    for h in set(hiddenimports): # Deduplicate
        args.append(f"--hidden-import={h}")

    print("Running PyInstaller with args:")
    # print(args)

    PyInstaller.__main__.run(args)

if __name__ == "__main__":
    build()
