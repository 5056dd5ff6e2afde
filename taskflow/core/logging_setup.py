"""Configuration du logging de l'API."""

import logging
import sys
from pathlib import Path
from typing import Optional

# Bibliothèques tierces trop bavardes en INFO
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "multipart", "python_multipart")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure le logger racine:
    - console (stderr) au niveau demandé
    - fichier optionnel, tout en DEBUG

    À appeler une seule fois au démarrage.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Évite les handlers en double (rechargement uvicorn, tests)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(getattr(logging, level.upper(), logging.INFO))
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
