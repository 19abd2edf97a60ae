"""Healthcare portal skills."""

from __future__ import annotations

from orchestrator.memory.models import FieldMap


def severity_recommendation(severity: int) -> str:
    if severity >= 8:
        return "High priority: consider seeking immediate medical attention."
    if severity >= 5:
        return "Moderate priority: schedule an appointment within a few days."
    return "Low priority: monitor symptoms and consider a routine check-up."


def greet(fields: FieldMap) -> str:
    return (
        "Welcome to HealthPortal! I'm your healthcare assistant. I can help you schedule appointments, "
        "check symptoms, refill prescriptions, and access your medical records. How can I assist you today?"
    )


def schedule_appointment(fields: FieldMap) -> str:
    specialty = fields.get("specialty") or "General Practice"
    urgency = fields.get("urgency") or "Routine (within 2 weeks)"
    preference = fields.get("date_preference")
    lines = [
        "Appointment Scheduling",
        "",
        f"Specialty: {specialty}",
        f"Urgency: {urgency}",
    ]
    if preference:
        lines.append(f"Preferred date: {preference}")
    lines.extend(
        [
            "",
            f"We're checking availability for {specialty} and will confirm by email and SMS.",
            "Emergency cases: please call 911 or visit the ER.",
        ]
    )
    return "\n".join(lines)


def symptom_check(fields: FieldMap) -> str:
    symptoms = fields.get("symptoms") or "general discomfort"
    duration = fields.get("duration") or "an unspecified time"
    try:
        severity = int(str(fields.get("severity") or 5))
    except ValueError:
        severity = 5
    return "\n".join(
        [
            "Symptom Assessment",
            "",
            f"Symptoms: {symptoms}",
            f"Duration: {duration}",
            f"Severity level: {severity}/10",
            "",
            severity_recommendation(severity),
            "",
            "Seek immediate care for severe chest pain, difficulty breathing or signs of stroke.",
            "24/7 Nurse Line: 1-800-HEALTH",
        ]
    )


def prescription_refill(fields: FieldMap) -> str:
    medication = fields.get("medication_name") or "your prescription"
    pharmacy = fields.get("pharmacy") or "your preferred pharmacy"
    return "\n".join(
        [
            "Prescription Refill Request",
            "",
            f"Medication: {medication}",
            f"Pharmacy: {pharmacy}",
            "",
            "Routine refills are ready in 2-4 hours; doctor approval can take 24-48 hours.",
            "You'll get an SMS notification when it's ready.",
        ]
    )


def medical_records(fields: FieldMap) -> str:
    record_type = fields.get("record_type") or "medical records"
    date_range = fields.get("date_range") or "recent"
    return "\n".join(
        [
            "Medical Records Access",
            "",
            f"Record type: {record_type}",
            f"Time period: {date_range}",
            "",
            "A secure download link will be available in the patient portal within 1-3 business days.",
        ]
    )


def goodbye(fields: FieldMap) -> str:
    return "Thank you for using HealthPortal! Take care of yourself. Feel better soon!"


def unknown(fields: FieldMap) -> str:
    return (
        "I'm sorry, I didn't understand that request. As your healthcare assistant, I can help you with:\n"
        "- Scheduling appointments\n"
        "- Symptom checking\n"
        "- Prescription refills\n"
        "- Medical records access\n\n"
        "What would you like help with today?"
    )


SKILLS = {
    "healthcare.greet": greet,
    "healthcare.schedule_appointment": schedule_appointment,
    "healthcare.symptom_check": symptom_check,
    "healthcare.prescription_refill": prescription_refill,
    "healthcare.medical_records": medical_records,
    "healthcare.exit": goodbye,
    "healthcare.unknown": unknown,
}
