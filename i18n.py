"""
i18n.py
UI strings (English / Spanish). Missing keys fall back to the key itself.
"""

from __future__ import annotations

from dataclasses import dataclass

EN = {
    "dashboard": "Dashboard",
    "members": "Members",
    "plans": "Membership plans",
    "classes": "Classes",
    "trainers": "Trainers",
    "equipment": "Equipment",
    "payments": "Payments",
    "reports": "Reports",
    "settings": "Settings",
    "logout": "Logout",
    "login": "Login",
    "username": "Username",
    "password": "Password",
    "invalidCredentials": "Invalid username or password.",
    "search": "Search",
    "noResults": "No results found",
    "showing": "Showing {start} to {end} of {total} results",
    "previous": "Previous",
    "next": "Next",
    "save": "Save",
    "delete": "Delete",
    "confirmDelete": "Confirm delete",
    "edit": "Edit",
    "cancel": "Cancel",
    "name": "Name",
    "email": "Email",
    "phone": "Phone",
    "plan": "Plan",
    "status": "Status",
    "amount": "Amount",
    "date": "Date",
    "method": "Method",
    "notes": "Notes",
    "member": "Member",
    "trainer": "Trainer",
    "statusActive": "Active",
    "statusExpired": "Expired",
    "statusPending": "Pending",
    "statusFrozen": "Frozen",
    "statusVerified": "Verified",
    "statusRejected": "Rejected",
    "statusOpen": "Open",
    "statusFull": "Full",
    "statusCancelled": "Cancelled",
    "statusInactive": "Inactive",
    "verify": "Verify",
    "reject": "Reject",
    "verifyPayment": "Verify payment",
    "rejectPayment": "Reject payment",
    "rejectionReason": "Rejection reason",
    "pleaseProvideRejectionReason": "Please provide a reason for the rejection.",
    "activeMembers": "Active members",
    "expiringSoon": "Expiring in next 7 days",
    "monthlyRevenue": "Monthly revenue (current month)",
    "pendingPayments": "Pending payments",
    "recentMembers": "Recent members",
    "language": "Language",
    "changePassword": "Change password",
    "announcements": "Announcements",
    "title": "Title",
    "content": "Content",
    "category": "Category",
    "publishDate": "Publish date",
    "expiryDate": "Expiry date",
    "hasExpiry": "Set an expiry date",
    "active": "Active",
    "todayClasses": "Today's classes",
    "noClassesToday": "No classes scheduled for today",
    "recentActivity": "Recent activity",
    "noRecentActivity": "No recent activity",
    "activityMember": "{name} joined the gym",
    "activityPayment": "{name} paid {amount}",
    "activityBooking": "{name} booked {detail}",
    "memberProfile": "Member profile",
    "backToMembers": "Back to members",
    "selectRowHint": "Select a row to open the member profile.",
    "overview": "Overview",
    "paymentHistory": "Payment history",
    "bookings": "Class bookings",
    "bookClass": "Book a class",
    "cancelBooking": "Cancel booking",
    "attendance": "Attendance",
    "totalPaid": "Total paid",
    "attendedClasses": "Classes attended",
    "statusConfirmed": "Confirmed",
    "statusAttended": "Attended",
    "statusCheckedIn": "Checked in",
    "statusNoShow": "No-show",
}

ES = {
    "dashboard": "Panel",
    "members": "Miembros",
    "plans": "Planes de membresía",
    "classes": "Clases",
    "trainers": "Entrenadores",
    "equipment": "Equipamiento",
    "payments": "Pagos",
    "reports": "Reportes",
    "settings": "Configuración",
    "logout": "Cerrar sesión",
    "login": "Iniciar sesión",
    "username": "Usuario",
    "password": "Contraseña",
    "invalidCredentials": "Usuario o contraseña inválidos.",
    "search": "Buscar",
    "noResults": "No se encontraron resultados",
    "showing": "Mostrando {start} a {end} de {total} resultados",
    "previous": "Anterior",
    "next": "Siguiente",
    "save": "Guardar",
    "delete": "Eliminar",
    "confirmDelete": "Confirmar eliminación",
    "edit": "Editar",
    "cancel": "Cancelar",
    "name": "Nombre",
    "email": "Correo",
    "phone": "Teléfono",
    "plan": "Plan",
    "status": "Estado",
    "amount": "Monto",
    "date": "Fecha",
    "method": "Método",
    "notes": "Notas",
    "member": "Miembro",
    "trainer": "Entrenador",
    "statusActive": "Activo",
    "statusExpired": "Vencido",
    "statusPending": "Pendiente",
    "statusFrozen": "Congelado",
    "statusVerified": "Verificado",
    "statusRejected": "Rechazado",
    "statusOpen": "Abierta",
    "statusFull": "Llena",
    "statusCancelled": "Cancelada",
    "statusInactive": "Inactivo",
    "verify": "Verificar",
    "reject": "Rechazar",
    "verifyPayment": "Verificar pago",
    "rejectPayment": "Rechazar pago",
    "rejectionReason": "Motivo del rechazo",
    "pleaseProvideRejectionReason": "Por favor indique el motivo del rechazo.",
    "activeMembers": "Miembros activos",
    "expiringSoon": "Vencen en los próximos 7 días",
    "monthlyRevenue": "Ingresos del mes",
    "pendingPayments": "Pagos pendientes",
    "recentMembers": "Miembros recientes",
    "language": "Idioma",
    "changePassword": "Cambiar contraseña",
    "announcements": "Anuncios",
    "title": "Título",
    "content": "Contenido",
    "category": "Categoría",
    "publishDate": "Fecha de publicación",
    "expiryDate": "Fecha de vencimiento",
    "hasExpiry": "Definir fecha de vencimiento",
    "active": "Activo",
    "todayClasses": "Clases de hoy",
    "noClassesToday": "No hay clases programadas para hoy",
    "recentActivity": "Actividad reciente",
    "noRecentActivity": "Sin actividad reciente",
    "activityMember": "{name} se unió al gimnasio",
    "activityPayment": "{name} pagó {amount}",
    "activityBooking": "{name} reservó {detail}",
    "memberProfile": "Perfil del miembro",
    "backToMembers": "Volver a miembros",
    "selectRowHint": "Seleccione una fila para abrir el perfil del miembro.",
    "overview": "Resumen",
    "paymentHistory": "Historial de pagos",
    "bookings": "Reservas de clases",
    "bookClass": "Reservar clase",
    "cancelBooking": "Cancelar reserva",
    "attendance": "Asistencia",
    "totalPaid": "Total pagado",
    "attendedClasses": "Clases asistidas",
    "statusConfirmed": "Confirmada",
    "statusAttended": "Asistió",
    "statusCheckedIn": "Registrado",
    "statusNoShow": "No asistió",
}

TRANSLATIONS = {"en": EN, "es": ES}


@dataclass
class Translator:
    language: str = "en"

    def set_language(self, language: str) -> None:
        if language in TRANSLATIONS:
            self.language = language

    def t(self, key: str, **kwargs) -> str:
        text = TRANSLATIONS.get(self.language, EN).get(key, key)
        return text.format(**kwargs) if kwargs else text

    def status_label(self, status: str | None) -> str:
        """'active' -> t('statusActive'), 'checked-in' -> t('statusCheckedIn')"""
        if not status:
            return ""
        key = "status" + "".join(part[:1].upper() + part[1:] for part in status.split("-"))
        label = self.t(key)
        return status if label == key else label
