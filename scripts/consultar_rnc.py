#!/usr/bin/env python3
"""Wrapper para el comando de consulta del registro RNC."""

from __future__ import annotations

import sys
from pathlib import Path

# Permite ejecutar desde el repositorio sin instalar el paquete.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC_PATH = _PROJECT_ROOT / "src"
if _SRC_PATH.exists() and str(_SRC_PATH) not in sys.path:
    sys.path.insert(0, str(_SRC_PATH))

from fiscaldo.commands.lookup import main

if __name__ == "__main__":  # pragma: no cover - ejecución directa
    raise SystemExit(main())
