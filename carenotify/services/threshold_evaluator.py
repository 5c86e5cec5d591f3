"""
Clinical threshold checks for submitted vital signs.

Pure functions: no I/O, no state. Only the blood pressure rule is wired by
default; the pulse/temperature/glucose/oxygen rules run when the caller asks
for extended checks (settings.VITALS_EXTENDED_ALERTS).
"""
from typing import Any, Dict, List, Optional, Tuple, Union

from carenotify.schemas.vitals import AlertDescriptor, VitalSigns

THRESHOLDS = {
    "blood_pressure": {
        "systolic": {"high": 140, "low": 90},
        "diastolic": {"high": 90, "low": 60},
    },
    "pulse": {"high": 100, "low": 60},
    "temperature": {"high": 100.4, "low": 97.0}, # Fahrenheit
    "weight": {"high_change": 5, "low_change": -5}, # kg between readings, no rule yet
    "glucose": {"high": 140, "low": 70}, # mg/dL
    "oxygen": {"low": 95}, # %
}


def _fmt(value: float) -> str:
    return f"{value:g}"


def parse_blood_pressure(reading: Optional[str]) -> Optional[Tuple[float, float]]:
    """"150/95" -> (150.0, 95.0). Anything that is not exactly two numbers gives None."""
    if not reading or not isinstance(reading, str):
        return None
    parts = reading.split("/")
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


def check_blood_pressure(systolic: float, diastolic: float) -> Optional[AlertDescriptor]:
    bp = THRESHOLDS["blood_pressure"]
    reading = f"{_fmt(systolic)}/{_fmt(diastolic)}"

    if systolic > bp["systolic"]["high"] or diastolic > bp["diastolic"]["high"]:
        return AlertDescriptor(type="high_blood_pressure", message=f"High blood pressure detected: {reading} mmHg.")
    if systolic < bp["systolic"]["low"] or diastolic < bp["diastolic"]["low"]:
        return AlertDescriptor(type="low_blood_pressure", message=f"Low blood pressure detected: {reading} mmHg.")
    return None


def _check_range(value: float, bounds: Dict[str, float], name: str, label: str, unit: str) -> Optional[AlertDescriptor]:
    if "high" in bounds and value > bounds["high"]:
        return AlertDescriptor(type=f"high_{name}", message=f"High {label} detected: {_fmt(value)}{unit}.")
    if "low" in bounds and value < bounds["low"]:
        return AlertDescriptor(type=f"low_{name}", message=f"Low {label} detected: {_fmt(value)}{unit}.")
    return None


def check_pulse(pulse: float) -> Optional[AlertDescriptor]:
    return _check_range(pulse, THRESHOLDS["pulse"], "pulse", "pulse rate", " BPM")


def check_temperature(temperature: float) -> Optional[AlertDescriptor]:
    return _check_range(temperature, THRESHOLDS["temperature"], "temperature", "temperature", "°F")


def coerce_vital_signs(raw: Dict[str, Any]) -> VitalSigns:
    """Build VitalSigns from a loose dict, dropping fields that are not numbers."""
    bp = raw.get("bloodPressure", raw.get("blood_pressure"))
    return VitalSigns(
        blood_pressure=bp if isinstance(bp, str) else None,
        pulse=_number(raw.get("pulse")),
        temperature=_number(raw.get("temperature")),
        weight=_number(raw.get("weight")),
    )


def evaluate_vital_signs(vitals: Union[VitalSigns, Dict[str, Any]], include_extended: bool = False) -> List[AlertDescriptor]:
    """
    Evaluate one vitals snapshot and return the alerts it raises.

    Malformed sub-fields are skipped. High blood pressure wins over low when
    both bounds are crossed (e.g. 150/50).
    """
    if isinstance(vitals, dict):
        vitals = coerce_vital_signs(vitals)

    alerts: List[AlertDescriptor] = []

    bp = parse_blood_pressure(vitals.blood_pressure)
    if bp:
        alert = check_blood_pressure(*bp)
        if alert:
            alerts.append(alert)

    if include_extended:
        if vitals.pulse is not None:
            alert = check_pulse(vitals.pulse)
            if alert:
                alerts.append(alert)
        if vitals.temperature is not None:
            alert = check_temperature(vitals.temperature)
            if alert:
                alerts.append(alert)

    return alerts


def _number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_health_metric(metric_type: str, value: Dict[str, Any], include_extended: bool = False) -> Optional[AlertDescriptor]:
    """Single-metric variant used for health-metric submissions."""
    value = value or {}

    if metric_type == "blood_pressure":
        systolic, diastolic = _number(value.get("systolic")), _number(value.get("diastolic"))
        if systolic is None or diastolic is None:
            return None
        return check_blood_pressure(systolic, diastolic)

    if not include_extended:
        return None

    reading = _number(value.get("value"))
    if reading is None:
        return None

    if metric_type == "heart_rate":
        return _check_range(reading, THRESHOLDS["pulse"], "heart_rate", "heart rate", " BPM")
    if metric_type == "temperature":
        return check_temperature(reading)
    if metric_type == "glucose":
        return _check_range(reading, THRESHOLDS["glucose"], "glucose", "blood glucose", " mg/dL")
    if metric_type == "oxygen":
        return _check_range(reading, THRESHOLDS["oxygen"], "oxygen", "oxygen saturation", "%")
    return None
