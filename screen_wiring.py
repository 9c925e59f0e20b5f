from dataclasses import dataclass

from config import ConfigInvalid
from sensor_source import SensorUnavailable


LEVEL_TAB_TITLE = "Bubble Level"
SETTINGS_TAB_TITLE = "Settings"


@dataclass(frozen=True)
class TabChangeResult:
    running: bool
    status_text: str


def readout_text(components: tuple[float, float, float]) -> tuple[str, str]:
    """Numeric X/Y readout shown under the level ring."""
    x, y = components[0], components[1]
    return f"X: {x:.2f}", f"Y: {y:.2f}"


def sync_session_to_tab(session, tab_index: int, level_tab_index: int = 0) -> TabChangeResult:
    """Run the session only while the level tab is showing.
    Subscription failures are reported in the result instead of raised."""
    if tab_index != level_tab_index:
        session.stop()
        return TabChangeResult(running=False, status_text="Paused")

    try:
        session.start()
    except SensorUnavailable as e:
        return TabChangeResult(running=False, status_text=f"Sensor unavailable: {e}")
    except ConfigInvalid as e:
        return TabChangeResult(running=False, status_text=f"Invalid configuration: {e}")
    return TabChangeResult(running=True, status_text="Measuring")


def swatch_style(color: str, selected: bool, size: int = 50) -> str:
    """Stylesheet for a round color swatch button; the selected one gets a black outline."""
    radius = size // 2
    border = "3px solid #000" if selected else "none"
    return (
        f"QPushButton {{ background-color: {color}; border-radius: {radius}px; "
        f"border: {border}; min-width: {size}px; max-width: {size}px; "
        f"min-height: {size}px; max-height: {size}px; }}"
    )


def apply_color_choice(session, color: str) -> str:
    """Apply the chosen bubble color to a live or idle session; returns the color in effect."""
    session.set_indicator_color(color)
    return session.indicator_color


def ring_pen_color(aligned_flash: bool) -> str:
    """Ring outline color: green while the aligned flash is showing, black otherwise."""
    return "#2ecc40" if aligned_flash else "#000000"


def aligned_flash_deadline(session, now: float, flash_ms: int) -> float | None:
    """End time of the ring flash for an aligned event, or None when the
    event was queued before the session stopped and should be ignored."""
    if not session.active:
        return None
    return now + flash_ms / 1000.0
