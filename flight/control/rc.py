"""Remote-control intent and PWM channel mapping.

RCData carries pilot intent in normalized units. Firmware bridges expect
raw PWM pulse widths on numbered input channels:

    channel 0: roll       angle_to_pwm
    channel 1: yaw        angle_to_pwm
    channel 2: throttle   thrust_to_pwm
    channel 3: -pitch     angle_to_pwm
    channels 4-11: switches 0-7   switch_to_pwm

Non-finite inputs map to the neutral pulse: 1500 for sticks, 1000 for
throttle and switches.

Example:
    >>> from flight.control.rc import RCData, rc_to_pwm_channels
    >>>
    >>> rc = RCData(throttle=0.5, switches=(1,), is_connected=True)
    >>> rc_to_pwm_channels(rc)[:5]
    [1500, 1500, 1500, 1500, 2000]
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype

RC_CHANNEL_COUNT = 12
RC_SWITCH_COUNT = 8

PWM_MIN = 1000
PWM_MID = 1500
PWM_MAX = 2000

# =============================================================================
# RC Intent
# =============================================================================


@beartype
@dataclass
class RCData:
    """Remote-control snapshot.

    Attributes:
        roll: Roll stick in [-1, 1]
        pitch: Pitch stick in [-1, 1] (positive nose up)
        yaw: Yaw stick in [-1, 1]
        throttle: Throttle in [0, 1]
        switches: Switch positions, up to 8 non-negative values
        is_connected: Whether the transmitter is connected
        timestamp: Time the snapshot was taken [s]
    """
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    throttle: float = 0.0
    switches: tuple[int, ...] = ()
    is_connected: bool = False
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        """Validate switch count and values."""
        if len(self.switches) > RC_SWITCH_COUNT:
            raise ValueError(
                f"At most {RC_SWITCH_COUNT} switches are supported, got {len(self.switches)}"
            )
        if any(s < 0 for s in self.switches):
            raise ValueError(f"Switch values must be non-negative, got {self.switches}")

    def get_switch(self, index: int) -> int:
        """Switch position, 0 for switches that were not supplied."""
        if not 0 <= index < RC_SWITCH_COUNT:
            raise IndexError(f"Switch index {index} out of range")
        return self.switches[index] if index < len(self.switches) else 0


# =============================================================================
# PWM Mapping
# =============================================================================


@beartype
def angle_to_pwm(angle: float) -> int:
    """Map a stick deflection in [-1, 1] to 1000-2000 us, centered at 1500."""
    if not np.isfinite(angle):
        return PWM_MID
    return int(round(PWM_MID + 500.0 * float(np.clip(angle, -1.0, 1.0))))


@beartype
def thrust_to_pwm(thrust: float) -> int:
    """Map throttle in [0, 1] to 1000-2000 us."""
    if not np.isfinite(thrust):
        return PWM_MIN
    return int(round(PWM_MIN + 1000.0 * float(np.clip(thrust, 0.0, 1.0))))


@beartype
def switch_to_pwm(switch: int | float, max_value: int | float = 1) -> int:
    """Map a switch position in [0, max_value] to 1000-2000 us."""
    if max_value <= 0:
        raise ValueError(f"max_value must be positive, got {max_value}")
    if not np.isfinite(switch):
        return PWM_MIN
    clamped = float(np.clip(switch, 0, max_value))
    return int(round(PWM_MIN + 1000.0 * clamped / max_value))


@beartype
def rc_to_pwm_channels(rc: RCData) -> list[int]:
    """Full 12-channel PWM frame for an RC snapshot."""
    channels = [
        angle_to_pwm(rc.roll),
        angle_to_pwm(rc.yaw),
        thrust_to_pwm(rc.throttle),
        angle_to_pwm(-rc.pitch),
    ]
    channels.extend(switch_to_pwm(rc.get_switch(i)) for i in range(RC_SWITCH_COUNT))
    return channels
