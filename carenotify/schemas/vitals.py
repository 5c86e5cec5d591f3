from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Any, Dict, List

class VitalSigns(BaseModel):
    """One snapshot of vitals. Field names accept the camelCase used by the web client."""
    model_config = ConfigDict(populate_by_name=True)

    blood_pressure: Optional[str] = Field(default=None, alias="bloodPressure") # "systolic/diastolic"
    pulse: Optional[float] = None
    temperature: Optional[float] = None # Fahrenheit
    weight: Optional[float] = None

class AlertDescriptor(BaseModel):
    type: str
    message: str

class VitalsCheckRequest(BaseModel):
    patient_id: int
    vital_signs: VitalSigns

class HealthMetricCheckRequest(BaseModel):
    patient_id: int
    metric_type: str # blood_pressure | heart_rate | temperature | glucose | oxygen
    value: Dict[str, Any] # {"systolic": .., "diastolic": ..} or {"value": ..}

class AlertsResponse(BaseModel):
    alerts: List[AlertDescriptor]
