from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List
from datetime import datetime

from ..core.enums import AlertLevel, DeviceStatus, Role, SensorType
from ..services.thresholds import ThresholdConfig

class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.USER

class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    active: bool
    class Config: from_attributes = True

class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    active: Optional[bool] = None

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)

class LoginIn(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut

class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    admin_id: Optional[int] = None

class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    active: Optional[bool] = None

class ProjectOut(BaseModel):
    id: int; name: str; description: Optional[str]; location: Optional[str]
    admin_id: Optional[int]; active: bool; created_at: datetime
    members: List[UserOut] = []
    class Config: from_attributes = True

class ProjectWithKey(ProjectOut):
    api_key: str

class MemberIn(BaseModel):
    user_id: int

class DeviceCreate(BaseModel):
    name: str
    device_uid: str
    project_id: int
    description: Optional[str] = None
    location: Optional[str] = None
    sensor_types: List[SensorType] = []

class DeviceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    sensor_types: Optional[List[SensorType]] = None
    status: Optional[DeviceStatus] = None
    active: Optional[bool] = None

class DeviceOut(BaseModel):
    id: int; device_uid: str; name: str; project_id: int
    description: Optional[str]; location: Optional[str]
    sensor_types: List[str]; status: str; last_seen: Optional[datetime]; active: bool
    class Config: from_attributes = True

class ThresholdIn(BaseModel):
    sensor_type: SensorType
    ideal_min: float = Field(allow_inf_nan=False)
    ideal_max: float = Field(allow_inf_nan=False)
    warning_min: float = Field(allow_inf_nan=False)
    warning_max: float = Field(allow_inf_nan=False)
    critical_min: float = Field(allow_inf_nan=False)
    critical_max: float = Field(allow_inf_nan=False)
    unit: str = Field(min_length=1)

    def to_config(self) -> ThresholdConfig:
        return ThresholdConfig(**self.model_dump(exclude={"sensor_type"}), sensor_type=self.sensor_type.value)

    @model_validator(mode="after")
    def check_ordering(self):
        if not self.to_config().is_ordered():
            raise ValueError(
                "bounds must satisfy critical_min <= warning_min <= ideal_min "
                "<= ideal_max <= warning_max <= critical_max"
            )
        return self

class ThresholdOut(BaseModel):
    id: Optional[int] = None
    sensor_type: str
    device_id: Optional[int] = None
    project_id: Optional[int] = None
    ideal_min: float; ideal_max: float
    warning_min: float; warning_max: float
    critical_min: float; critical_max: float
    unit: str
    is_default: bool = False
    scope: str
    class Config: from_attributes = True

class ReadingValue(BaseModel):
    sensor_type: SensorType
    value: float = Field(allow_inf_nan=False)
    timestamp: Optional[datetime] = None

class ReadingSubmit(BaseModel):
    device_uid: str
    readings: List[ReadingValue] = Field(min_length=1)

class ReadingOut(BaseModel):
    id: int; device_id: int; project_id: int; timestamp: datetime
    sensor_type: str; value: float; unit: str
    is_alert: bool; alert_level: AlertLevel; alert_message: Optional[str]
    class Config: from_attributes = True

class IngestResult(BaseModel):
    success: bool = True
    count: int
    data: List[ReadingOut]

class ReadingPage(BaseModel):
    success: bool = True
    count: int
    total_count: int
    pages: int
    current_page: int
    data: List[ReadingOut]
