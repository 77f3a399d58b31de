"""Firmware collaborators for the firmware-bridge controller.

A simulated board (RC inputs, IMU latch, motor outputs), a status message
link, and a rate-mode QuadX firmware that runs against them.
"""

from flight.firmware.board import ImuReading, KinematicsImu, SensorSource, SimulatedBoard
from flight.firmware.comm_link import CommLink
from flight.firmware.mixer import QUADX_MIX, Firmware, MixerFirmware
from flight.firmware.pid import PIDController, PIDGains

__all__ = [
    "ImuReading",
    "KinematicsImu",
    "SensorSource",
    "SimulatedBoard",
    "CommLink",
    "Firmware",
    "MixerFirmware",
    "QUADX_MIX",
    "PIDController",
    "PIDGains",
]
