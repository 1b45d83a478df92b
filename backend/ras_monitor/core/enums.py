from enum import Enum


class SensorType(str, Enum):
    TEMPERATURE = "temperature"
    PH = "pH"
    DISSOLVED_OXYGEN = "dissolvedOxygen"
    CONDUCTIVITY = "conductivity"
    TURBIDITY = "turbidity"
    ORP = "orp"
    TDS = "tds"


class AlertLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class Role(str, Enum):
    USER = "user"
    PROJECT_ADMIN = "projectadmin"
    SUPERADMIN = "superadmin"


class DeviceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
