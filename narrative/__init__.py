"""Narrative system: timed scripts, the drip engine and the hub screen."""

from .drip import DripEngine
from .hub import HubScreen
from .script import Script, Stage, build_hub_script, thread_stage

__all__ = [
    "DripEngine",
    "HubScreen",
    "Script",
    "Stage",
    "build_hub_script",
    "thread_stage",
]
