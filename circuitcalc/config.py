"""Runtime settings read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_FALSTAD_URL = "https://www.falstad.com/circuit/circuitjs.html"
DEFAULT_SIM_VMAX = 24.0


@dataclass(frozen=True)
class Settings:
    falstad_url: str
    simulator_v_max: float


def get_settings() -> Settings:
    """Build settings from CIRCUITCALC_* environment variables."""
    return Settings(
        falstad_url=os.getenv("CIRCUITCALC_FALSTAD_URL", DEFAULT_FALSTAD_URL),
        simulator_v_max=float(os.getenv("CIRCUITCALC_SIM_VMAX", DEFAULT_SIM_VMAX)),
    )
