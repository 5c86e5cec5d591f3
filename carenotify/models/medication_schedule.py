from sqlalchemy import Column, Integer, String, Boolean, Date, ForeignKey
from carenotify.core.database import Base

class MedicationSchedule(Base):
    __tablename__ = "medication_schedules"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), index=True, nullable=False)
    prescription_item_id = Column(Integer, ForeignKey("prescription_items.id"), nullable=True)
    medication_name = Column(String, nullable=False)
    dosage = Column(String, nullable=False)
    frequency = Column(String, nullable=False, default="once_daily")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True) # open-ended when NULL
    time_of_day = Column(String, nullable=True) # "morning,evening" | "08:30" | "as needed"
    days_of_week = Column(String, nullable=True) # "mon,wed,fri"; empty means every day
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    instructions = Column(String, nullable=True)
    last_reminded_slot = Column(String, nullable=True) # Keys sent today: YYYY-MM-DDTHH:MM[,YYYY-MM-DDTHH:MM...]
