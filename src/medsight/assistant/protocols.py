"""
Emergency Protocols
===================

Step-by-step emergency protocols and the short procedure checklists
shown next to the guidance camera.

Protocols are grouped by category and carry a severity. A
ProtocolChecklist tracks which steps a responder has ticked off;
toggling the same step twice un-checks it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple


logger = logging.getLogger(__name__)


class ProtocolSeverity(str, Enum):
    CRITICAL = "critical"
    URGENT = "urgent"
    SEMI_URGENT = "semi-urgent"


class ProtocolCategory(str, Enum):
    """Protocol categories. Values match the labels shown to responders."""

    CARDIAC = "Cardiac"
    TRAUMA = "Trauma"
    ALLERGY = "Allergy"
    NEUROLOGICAL = "Neurological"


@dataclass(frozen=True, slots=True)
class ProtocolStep:
    """
    One action within a protocol.

    Attributes:
        number: 1-based position within the protocol
        action: What to do
        timeframe: When it should be done, if the protocol says
        critical: Whether skipping the step endangers the patient
        details: How to do it
    """

    number: int
    action: str
    timeframe: Optional[str] = None
    critical: bool = False
    details: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "action": self.action,
            "timeframe": self.timeframe,
            "critical": self.critical,
            "details": self.details,
        }


@dataclass(frozen=True, slots=True)
class EmergencyProtocol:
    id: str
    title: str
    severity: ProtocolSeverity
    category: ProtocolCategory
    timeframe: str
    steps: Tuple[ProtocolStep, ...]
    supplies: Tuple[str, ...] = ()
    considerations: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        numbers = [step.number for step in self.steps]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"Protocol {self.id!r} steps must be numbered 1..n, got {numbers}")

    def step(self, number: int) -> ProtocolStep:
        if not 1 <= number <= len(self.steps):
            raise IndexError(f"Protocol {self.id!r} has no step {number}")
        return self.steps[number - 1]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "severity": self.severity.value,
            "category": self.category.value,
            "timeframe": self.timeframe,
            "steps": [step.to_dict() for step in self.steps],
            "supplies": list(self.supplies),
            "considerations": list(self.considerations),
        }


@dataclass(frozen=True, slots=True)
class Procedure:
    """Short procedure checklist for the guidance overlay."""

    id: str
    title: str
    steps: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "steps": list(self.steps)}


def _steps(*rows: Tuple[str, str, bool, str]) -> Tuple[ProtocolStep, ...]:
    return tuple(
        ProtocolStep(number=i, action=action, timeframe=timeframe, critical=critical, details=details)
        for i, (action, timeframe, critical, details) in enumerate(rows, start=1)
    )


PROTOCOLS: Tuple[EmergencyProtocol, ...] = (
    EmergencyProtocol(
        id="cardiac-arrest",
        title="Cardiac Arrest (Adult)",
        severity=ProtocolSeverity.CRITICAL,
        category=ProtocolCategory.CARDIAC,
        timeframe="Immediate",
        steps=_steps(
            ("Check responsiveness and breathing", "10 seconds", True,
             'Tap shoulders, shout "Are you okay?", check for normal breathing'),
            ("Activate emergency response", "Immediate", True,
             "Call code blue, request defibrillator and resuscitation team"),
            ("Begin chest compressions", "Within 1 minute", True,
             "Center of chest, 100-120/min, compress 2+ inches deep"),
            ("Attach defibrillator", "Within 3 minutes", True,
             "Apply pads, analyze rhythm, charge if shockable"),
            ("Establish airway", "Within 5 minutes", False,
             "Bag-mask ventilation, consider advanced airway"),
            ("IV access and medications", "Within 10 minutes", False,
             "Epinephrine 1mg IV every 3-5 minutes"),
        ),
        supplies=("Defibrillator", "Bag-mask", "IV supplies", "Epinephrine", "Amiodarone"),
        considerations=(
            "Continue CPR until ROSC or 20+ minutes",
            "Consider reversible causes (4 H's and 4 T's)",
            "Family notification and support",
        ),
    ),
    EmergencyProtocol(
        id="severe-bleeding",
        title="Severe Hemorrhage Control",
        severity=ProtocolSeverity.CRITICAL,
        category=ProtocolCategory.TRAUMA,
        timeframe="Immediate",
        steps=_steps(
            ("Ensure scene safety", "Immediate", True,
             "Use universal precautions, assess for ongoing danger"),
            ("Apply direct pressure", "Immediate", True,
             "Firm, continuous pressure with gauze or cloth"),
            ("Elevate injured area", "Immediate", False,
             "Raise above heart level if possible, maintain pressure"),
            ("Apply tourniquet if needed", "Within 2 minutes", True,
             "For extremity bleeding uncontrolled by pressure"),
            ("Establish IV access", "Within 5 minutes", False,
             "Large bore IV, blood type and crossmatch"),
            ("Monitor vital signs", "Every 5 minutes", False,
             "Watch for signs of shock, prepare for transfusion"),
        ),
        supplies=("Gauze", "Pressure dressing", "Tourniquet", "IV supplies", "Blood products"),
        considerations=(
            "Note tourniquet time",
            "Prepare for surgical intervention",
            "Monitor for shock",
        ),
    ),
    EmergencyProtocol(
        id="anaphylaxis",
        title="Anaphylaxis",
        severity=ProtocolSeverity.CRITICAL,
        category=ProtocolCategory.ALLERGY,
        timeframe="Immediate",
        steps=_steps(
            ("Remove/avoid trigger", "Immediate", True,
             "Stop suspected allergen, discontinue medications"),
            ("Administer epinephrine", "Immediate", True,
             "EpiPen or 0.3-0.5mg IM in anterolateral thigh"),
            ("Call for help", "Immediate", True,
             "Activate emergency response, prepare for resuscitation"),
            ("Monitor airway", "Continuous", True,
             "Prepare for intubation if stridor or swelling"),
            ("IV access and fluids", "Within 5 minutes", False,
             "Large bore IV, normal saline bolus"),
            ("Secondary medications", "Within 10 minutes", False,
             "H1/H2 antihistamines, corticosteroids"),
        ),
        supplies=("Epinephrine", "Antihistamines", "Corticosteroids", "IV supplies", "Airway equipment"),
        considerations=(
            "May need repeat epinephrine",
            "Observe for biphasic reaction",
            "Patient education on avoidance",
        ),
    ),
    EmergencyProtocol(
        id="stroke",
        title="Acute Stroke",
        severity=ProtocolSeverity.URGENT,
        category=ProtocolCategory.NEUROLOGICAL,
        timeframe="4.5 hours",
        steps=_steps(
            ("FAST assessment", "5 minutes", True,
             "Face drooping, Arm weakness, Speech difficulty, Time to call"),
            ("Check blood glucose", "Immediate", True,
             "Rule out hypoglycemia as cause of symptoms"),
            ("Obtain CT scan", "Within 25 minutes", True,
             "Rule out hemorrhage before thrombolytic therapy"),
            ("IV access", "Within 10 minutes", False,
             "Normal saline, avoid dextrose solutions"),
            ("Assess for thrombolytics", "Within 60 minutes", False,
             "Time of onset, contraindications, NIHSS score"),
            ("Continuous monitoring", "Ongoing", False,
             "Neurological checks, blood pressure, oxygen"),
        ),
        supplies=("Blood glucose meter", "IV supplies", "Oxygen", "Thrombolytics", "Monitoring equipment"),
        considerations=("Time is brain", "Blood pressure management", "Avoid oral intake"),
    ),
    EmergencyProtocol(
        id="seizure",
        title="Status Epilepticus",
        severity=ProtocolSeverity.URGENT,
        category=ProtocolCategory.NEUROLOGICAL,
        timeframe="30 minutes",
        steps=_steps(
            ("Protect airway", "Immediate", True,
             "Position on side, suction if needed, do not restrain"),
            ("Monitor vital signs", "Continuous", True,
             "Oxygen saturation, blood pressure, temperature"),
            ("IV access", "Within 5 minutes", True,
             "Large bore IV, blood glucose, electrolytes"),
            ("Administer benzos", "Within 10 minutes", True,
             "Lorazepam 2-4mg IV or diazepam 5-10mg IV"),
            ("Second line agents", "Within 20 minutes", False,
             "Phenytoin or fosphenytoin if seizure continues"),
            ("Third line therapy", "Within 30 minutes", False,
             "Anesthetics, intubation, ICU management"),
        ),
        supplies=("Benzodiazepines", "Phenytoin", "Airway equipment", "IV supplies", "Monitoring equipment"),
        considerations=("Identify underlying cause", "Prevent injury", "Continuous EEG monitoring"),
    ),
)


PROCEDURES: Tuple[Procedure, ...] = (
    Procedure(
        id="cpr",
        title="CPR Procedure",
        steps=(
            "Place patient on flat surface",
            "Position hands on center of chest",
            "Compress 2 inches deep at 100-120 BPM",
            "Give 2 rescue breaths after 30 compressions",
        ),
    ),
    Procedure(
        id="wound",
        title="Wound Care",
        steps=(
            "Clean hands and wear gloves",
            "Irrigate wound with sterile saline",
            "Apply appropriate dressing",
            "Monitor for signs of infection",
        ),
    ),
    Procedure(
        id="iv",
        title="IV Insertion",
        steps=(
            "Select appropriate vein",
            "Clean site with antiseptic",
            "Insert needle at 15-30 degree angle",
            "Secure catheter and apply dressing",
        ),
    ),
)


EMERGENCY_CONTACTS: Tuple[Dict[str, str], ...] = (
    {"name": "Emergency Services", "contact": "911"},
    {"name": "Medical Control", "contact": "+1 (555) 123-4567"},
    {"name": "Nearest Hospital", "contact": "Regional Medical Center"},
)


def protocols_by_category(
    category: Optional[str] = None,
    protocols: Tuple[EmergencyProtocol, ...] = PROTOCOLS,
) -> List[EmergencyProtocol]:
    """
    Protocols in a category, or all of them for None / 'all'.

    Raises:
        ValueError: If the category is not known
    """
    if category is None or category == "all":
        return list(protocols)
    wanted = ProtocolCategory(category)
    return [p for p in protocols if p.category == wanted]


def get_protocol(protocol_id: str) -> EmergencyProtocol:
    for protocol in PROTOCOLS:
        if protocol.id == protocol_id:
            return protocol
    raise KeyError(protocol_id)


def get_procedure(procedure_id: str) -> Procedure:
    for procedure in PROCEDURES:
        if procedure.id == procedure_id:
            return procedure
    raise KeyError(procedure_id)


class ProtocolChecklist:
    """
    Completed-step state for the protocols a responder is working through.

    Example:
        checklist = ProtocolChecklist()
        checklist.toggle_step("cardiac-arrest", 1)   # True, now done
        checklist.toggle_step("cardiac-arrest", 1)   # False, undone
    """

    def __init__(self, protocols: Tuple[EmergencyProtocol, ...] = PROTOCOLS) -> None:
        self._protocols = {p.id: p for p in protocols}
        self._completed: Dict[str, Set[int]] = {}

    def protocol(self, protocol_id: str) -> EmergencyProtocol:
        try:
            return self._protocols[protocol_id]
        except KeyError:
            raise KeyError(f"Unknown protocol: {protocol_id}") from None

    def toggle_step(self, protocol_id: str, number: int) -> bool:
        """
        Flip a step between done and not done.

        Returns:
            True if the step is now complete

        Raises:
            KeyError: Unknown protocol
            IndexError: Step number outside 1..len(steps)
        """
        step = self.protocol(protocol_id).step(number)
        done = self._completed.setdefault(protocol_id, set())
        if number in done:
            done.discard(number)
            return False
        done.add(number)
        if step.critical:
            logger.info(f"Critical step {number} of {protocol_id!r} completed: {step.action}")
        return True

    def completed(self, protocol_id: str) -> List[int]:
        self.protocol(protocol_id)
        return sorted(self._completed.get(protocol_id, ()))

    def outstanding_critical(self, protocol_id: str) -> List[ProtocolStep]:
        """Critical steps not yet ticked off, in protocol order."""
        done = self._completed.get(protocol_id, set())
        return [s for s in self.protocol(protocol_id).steps if s.critical and s.number not in done]

    def reset(self, protocol_id: Optional[str] = None) -> None:
        """Clear one protocol's progress, or every protocol's for None."""
        if protocol_id is None:
            self._completed.clear()
            return
        self.protocol(protocol_id)
        self._completed.pop(protocol_id, None)

    def progress(self, protocol_id: str) -> dict:
        protocol = self.protocol(protocol_id)
        completed = self.completed(protocol_id)
        return {
            "protocol_id": protocol_id,
            "completed_steps": completed,
            "total_steps": len(protocol.steps),
            "outstanding_critical": [s.number for s in self.outstanding_critical(protocol_id)],
            "finished": len(completed) == len(protocol.steps),
        }
