"""Fixed study topics and expert levels offered by the setup screen."""

from __future__ import annotations

# value -> display label
TOPICS: dict[str, str] = {
    "Sistema Dactiloscópico Argentino": (
        "Sistema Dactiloscópico Argentino (Vucetich)"
    ),
    "Puntos Característicos": "Identificación de Puntos Característicos",
    "Conteo de Líneas y Topografía": (
        "Conteo de Líneas y Topografía del Dactilograma"
    ),
    "Clasificación Decadactilar": "Fichaje y Clasificación Decadactilar",
}

LEVELS: tuple[str, ...] = ("Principiante", "Universitario", "Perito", "Maestro")

DEFAULT_TOPIC = "Sistema Dactiloscópico Argentino"
DEFAULT_LEVEL = "Universitario"
