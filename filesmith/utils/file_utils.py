import os
import shutil
import uuid
from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def normalize_extension(ext: str) -> str:
    """``".PNG"`` -> ``"png"``."""
    return ext.strip().lstrip(".").lower()


def extension_of(path: str | Path) -> str:
    return normalize_extension(Path(path).suffix)


def temp_sibling(path: str | Path) -> Path:
    """Hidden scratch path in the same directory, so ``os.replace`` stays atomic."""
    p = Path(path)
    return p.with_name(f".tmp-{uuid.uuid4().hex[:8]}-{p.name}")


def atomic_copy(src: str | Path, dst: str | Path) -> Path:
    dst = Path(dst)
    tmp = temp_sibling(dst)
    try:
        shutil.copyfile(src, tmp)
        os.replace(tmp, dst)
    finally:
        if tmp.exists():
            tmp.unlink()
    return dst


def remove_quietly(path: str | Path | None) -> None:
    if not path:
        return
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass


def safe_filename(name: str) -> str:
    keepchars = (" ", ".", "_", "-")
    return "".join(c for c in name if c.isalnum() or c in keepchars).strip()


def atomic_write_text(path: str | Path, text: str) -> Path:
    path = Path(path)
    tmp = temp_sibling(path)
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
    return path
