"""Import all models so SQLModel.metadata picks them up."""

from app.models.activity_branch import (
    ActivityBranch,
    ActivityBranchDetail,
    ActivityBranchRead,
    AvailableDefaultService,
    DefaultActivityService,
    DefaultActivityServiceRead,
)
from app.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatus,
    AppointmentUpdate,
    AvailabilityRead,
    CalendarDay,
    CalendarRead,
    ReminderRunResult,
)
from app.models.attendance import (
    Attendance,
    AttendanceCreate,
    AttendanceEmployee,
    AttendanceRead,
    AttendanceService,
    AttendanceServiceAdd,
    AttendanceServiceRead,
    AttendanceUpdate,
    ServiceEmployeePair,
)
from app.models.client import Client, ClientCreate, ClientRead, ClientReportRow, ClientUpdate
from app.models.company import Company, CompanyRead, ShareTemplateRead, ShareTemplateUpdate, ShareTextRead
from app.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeServicePreference,
    EmployeeUpdate,
    ServicePreferencesUpdate,
)
from app.models.password_recovery_token import PasswordRecoveryToken
from app.models.service import Service, ServiceCreate, ServiceRead, ServiceUpdate
from app.models.user import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    UserRead,
    UserRole,
)

__all__ = [
    "ActivityBranch",
    "ActivityBranchDetail",
    "ActivityBranchRead",
    "Appointment",
    "AppointmentCreate",
    "AppointmentRead",
    "AppointmentStatus",
    "AppointmentUpdate",
    "Attendance",
    "AttendanceCreate",
    "AttendanceEmployee",
    "AttendanceRead",
    "AttendanceService",
    "AttendanceServiceAdd",
    "AttendanceServiceRead",
    "AttendanceUpdate",
    "AvailabilityRead",
    "AvailableDefaultService",
    "CalendarDay",
    "CalendarRead",
    "Client",
    "ClientCreate",
    "ClientRead",
    "ClientReportRow",
    "ClientUpdate",
    "Company",
    "CompanyRead",
    "DefaultActivityService",
    "DefaultActivityServiceRead",
    "Employee",
    "EmployeeCreate",
    "EmployeeRead",
    "EmployeeServicePreference",
    "EmployeeUpdate",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "LoginRequest",
    "PasswordRecoveryToken",
    "RegisterRequest",
    "ReminderRunResult",
    "ResetPasswordRequest",
    "Service",
    "ServiceCreate",
    "ServiceEmployeePair",
    "ServicePreferencesUpdate",
    "ServiceRead",
    "ServiceUpdate",
    "ShareTemplateRead",
    "ShareTemplateUpdate",
    "ShareTextRead",
    "User",
    "UserRead",
    "UserRole",
]
