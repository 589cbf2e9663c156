from enum import Enum


class Role(str, Enum):
    user = "user"
    admin = "admin"


class Permission(str, Enum):
    view_vehicles = "view_vehicles"
    manage_vehicles = "manage_vehicles"
    view_customers = "view_customers"
    manage_customers = "manage_customers"
    view_reservations = "view_reservations"
    manage_reservations = "manage_reservations"
    manage_maintenance = "manage_maintenance"
    manage_notifications = "manage_notifications"
    manage_users = "manage_users"


class MaintenanceStatus(str, Enum):
    ok = "ok"
    scheduled = "scheduled"
    in_service = "in_service"
    needs_repair = "needs_repair"


class AvailabilityStatus(str, Enum):
    available = "available"
    rented = "rented"
    scheduled = "scheduled"
    needs_fixing = "needs_fixing"
    not_for_rental = "not_for_rental"


class ReservationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    booked = "booked"
    active = "active"
    picked_up = "picked_up"
    returned = "returned"
    completed = "completed"
    cancelled = "cancelled"


class ReservationType(str, Enum):
    standard = "standard"
    replacement = "replacement"
    maintenance_block = "maintenance_block"


class NotificationPriority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"


class NotificationType(str, Enum):
    spare_assignment = "spare_assignment"
    spare_assignment_reminder = "spare_assignment_reminder"
    maintenance = "maintenance"
    custom = "custom"


# Reservations in these states no longer occupy their vehicle
NON_BLOCKING_STATUSES = (ReservationStatus.cancelled.value, ReservationStatus.completed.value)
