"""Appointment booking skills backed by a small in-process calendar."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from orchestrator.memory.models import FieldMap


@dataclass(frozen=True, slots=True)
class AvailableSlot:
    date: str
    time: str
    service: str
    duration: str

    @property
    def hour(self) -> int:
        clock, _, meridiem = self.time.partition(" ")
        hour = int(clock.split(":")[0])
        if meridiem == "PM" and hour != 12:
            hour += 12
        if meridiem == "AM" and hour == 12:
            hour = 0
        return hour


CALENDAR = (
    AvailableSlot("Tomorrow", "9:00 AM", "Medical consultation", "30 min"),
    AvailableSlot("Tomorrow", "10:30 AM", "Business meeting", "60 min"),
    AvailableSlot("Tomorrow", "2:00 PM", "Personal consultation", "45 min"),
    AvailableSlot("Tomorrow", "4:30 PM", "Technical support", "30 min"),
    AvailableSlot("Monday", "9:00 AM", "Medical consultation", "30 min"),
    AvailableSlot("Monday", "11:00 AM", "Business meeting", "60 min"),
    AvailableSlot("Monday", "1:30 PM", "Medical consultation", "30 min"),
    AvailableSlot("Monday", "3:00 PM", "Personal consultation", "45 min"),
    AvailableSlot("Monday", "6:00 PM", "Technical support", "30 min"),
    AvailableSlot("Tuesday", "10:00 AM", "Business meeting", "60 min"),
    AvailableSlot("Tuesday", "2:30 PM", "Medical consultation", "30 min"),
    AvailableSlot("Tuesday", "4:00 PM", "Personal consultation", "45 min"),
    AvailableSlot("Wednesday", "9:30 AM", "Technical support", "30 min"),
    AvailableSlot("Wednesday", "11:30 AM", "Medical consultation", "30 min"),
    AvailableSlot("Wednesday", "3:30 PM", "Business meeting", "60 min"),
    AvailableSlot("Friday", "10:00 AM", "Personal consultation", "45 min"),
    AvailableSlot("Friday", "1:00 PM", "Medical consultation", "30 min"),
    AvailableSlot("Friday", "5:30 PM", "Technical support", "30 min"),
)

BOOKED = {
    "APT-123456": ("Tomorrow at 2:00 PM", "Medical consultation"),
    "APT-789012": ("Friday at 10:00 AM", "Business meeting"),
    "APT-555666": ("Monday at 3:00 PM", "Personal consultation"),
    "APT-111222": ("Thursday at 9:00 AM", "Technical support"),
    "APT-333444": ("Next week Tuesday at 1:00 PM", "Medical consultation"),
}

_TIME_WINDOWS = {
    "Morning": (9, 12),
    "Afternoon": (12, 17),
    "Evening": (17, 21),
}


def find_available_slots(
    date: str | None = None,
    time_preference: str | None = None,
    service: str | None = None,
) -> list[AvailableSlot]:
    slots = list(CALENDAR)

    if date:
        wanted = date.lower()
        slots = [
            slot
            for slot in slots
            if slot.date.lower() in wanted
            or wanted in slot.date.lower()
            or ("week" in wanted and slot.date != "Tomorrow")
        ]

    if time_preference:
        for label, (start, end) in _TIME_WINDOWS.items():
            if time_preference.startswith(label):
                slots = [slot for slot in slots if start <= slot.hour < end]
                break

    if service and service != "Any service":
        slots = [slot for slot in slots if slot.service == service]

    return slots


def greet(fields: FieldMap) -> str:
    return (
        "Hello! Welcome to our appointment booking system. I can help you schedule appointments, "
        "check availability, or cancel existing bookings. How can I assist you today?"
    )


def schedule_appointment(fields: FieldMap) -> str:
    confirmation_id = f"APT-{secrets.randbelow(10**6):06d}"
    return "\n".join(
        [
            "Appointment Scheduled Successfully!",
            "",
            f"- Date: {fields.get('date')}",
            f"- Time: {fields.get('time')}",
            f"- Service: {fields.get('service')}",
            f"- Confirmation ID: {confirmation_id}",
            "",
            "A confirmation email will be sent to you shortly.",
        ]
    )


def cancel_appointment(fields: FieldMap) -> str:
    confirmation_id = str(fields.get("confirmation_id") or "").upper()
    if not confirmation_id:
        return (
            "To cancel your appointment, I'll need your confirmation ID. "
            "Please provide your appointment confirmation ID (format: APT-123456)."
        )

    booking = BOOKED.get(confirmation_id)
    if booking is None:
        return (
            f"I couldn't find an appointment with confirmation ID: {confirmation_id}. "
            "Please check your confirmation ID and try again, or contact support if you need assistance."
        )

    when, service = booking
    return "\n".join(
        [
            "Appointment Cancelled Successfully",
            "",
            f"- Confirmation ID: {confirmation_id}",
            f"- Appointment: {when}",
            f"- Service Type: {service}",
            "",
            "Any applicable refunds will be processed within 3-5 business days.",
        ]
    )


def check_availability(fields: FieldMap) -> str:
    date = fields.get("date")
    time_preference = fields.get("time_preference")
    service = fields.get("service")
    slots = find_available_slots(
        str(date) if date else None,
        str(time_preference) if time_preference else None,
        str(service) if service else None,
    )

    criteria = [
        f"{label}: {value}"
        for label, value in (("Date", date), ("Time", time_preference), ("Service", service))
        if value
    ]
    if not slots:
        return (
            "No available slots found"
            + (f" for {', '.join(criteria)}" if criteria else "")
            + ". Try different dates or times, or check availability for next week."
        )

    lines = ["Available Appointment Slots", ""]
    if criteria:
        lines.append(f"Search criteria: {' | '.join(criteria)}")
        lines.append("")
    lines.extend(f"- {slot.date} at {slot.time}: {slot.service} ({slot.duration})" for slot in slots[:8])
    if len(slots) > 8:
        lines.append(f"...and {len(slots) - 8} more.")
    lines.append("")
    lines.append("Would you like to book one of these?")
    return "\n".join(lines)


def goodbye(fields: FieldMap) -> str:
    return "Goodbye! Thank you for using our appointment system. Have a great day!"


def unknown(fields: FieldMap) -> str:
    return (
        "I'm sorry, I didn't understand that. I can help you with:\n"
        "- Scheduling appointments\n"
        "- Checking availability\n"
        "- Canceling appointments\n\n"
        "What would you like to do?"
    )


SKILLS = {
    "appointments.greet": greet,
    "appointments.schedule_appointment": schedule_appointment,
    "appointments.cancel_appointment": cancel_appointment,
    "appointments.check_availability": check_availability,
    "appointments.exit": goodbye,
    "appointments.unknown": unknown,
}
