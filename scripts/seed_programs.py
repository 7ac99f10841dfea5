"""Load the default program catalog, updating programs that already exist."""

from datetime import date

from app import create_app
from models import db
from models.program import Program

APPLICATION_WINDOW = (date(2025, 3, 1), date(2025, 6, 30))
HOSTEL_NOTE = "Additional charges: ₹{hostel} (hostel), ₹{mess} (mess)"

PROGRAMS = [
    {
        "program_code": "BTECH_CSE",
        "program_name": "B.Tech Computer Science and Engineering",
        "department": "Computer Science and Engineering",
        "duration_years": 4,
        "total_seats": 600,
        "eligibility_criteria": "Minimum 60% in 12th with Physics, Chemistry, Mathematics. "
        "Valid JEE Main score required.",
        "fees_structure": "Annual fee: ₹1,50,000. " + HOSTEL_NOTE.format(hostel="25,000", mess="15,000"),
        "description": "Four-year undergraduate program covering software development, "
        "algorithms, data structures and emerging technologies.",
    },
    {
        "program_code": "BTECH_CSE_DS",
        "program_name": "B.Tech Computer Science and Engineering (Data Science)",
        "department": "Computer Science and Engineering",
        "duration_years": 4,
        "total_seats": 120,
        "eligibility_criteria": "Minimum 60% in 12th with Physics, Chemistry, Mathematics. "
        "Valid JEE Main score required.",
        "fees_structure": "Annual fee: ₹1,60,000. " + HOSTEL_NOTE.format(hostel="25,000", mess="15,000"),
        "description": "Data science, machine learning, big data analytics and statistical computing.",
    },
    {
        "program_code": "BTECH_AI_ML",
        "program_name": "B.Tech Artificial Intelligence and Machine Learning",
        "department": "Computer Science and Engineering",
        "duration_years": 4,
        "total_seats": 180,
        "eligibility_criteria": "Minimum 60% in 12th with Physics, Chemistry, Mathematics. "
        "Valid JEE Main score required.",
        "fees_structure": "Annual fee: ₹1,70,000. " + HOSTEL_NOTE.format(hostel="25,000", mess="15,000"),
        "description": "Artificial intelligence, machine learning, deep learning and neural networks.",
    },
    {
        "program_code": "BCA",
        "program_name": "Bachelor of Computer Application (BCA)",
        "department": "Computer Applications",
        "duration_years": 3,
        "total_seats": 180,
        "eligibility_criteria": "Minimum 50% in 12th with Mathematics as one of the subjects.",
        "fees_structure": "Annual fee: ₹80,000. " + HOSTEL_NOTE.format(hostel="20,000", mess="12,000"),
        "description": "Programming, web development and software engineering.",
    },
    {
        "program_code": "BBA",
        "program_name": "Bachelor of Business Administration (BBA)",
        "department": "Management Studies",
        "duration_years": 3,
        "total_seats": 180,
        "eligibility_criteria": "Minimum 50% in 12th from any stream.",
        "fees_structure": "Annual fee: ₹75,000. " + HOSTEL_NOTE.format(hostel="20,000", mess="12,000"),
        "description": "Management principles, finance and marketing.",
    },
]


def seed_programs() -> tuple[int, int]:
    created = updated = 0
    for order, fields in enumerate(PROGRAMS, start=1):
        program = Program.query.filter_by(program_code=fields["program_code"]).first()
        if program is None:
            program = Program(program_code=fields["program_code"])
            db.session.add(program)
            created += 1
        else:
            updated += 1
        for attr, value in fields.items():
            setattr(program, attr, value)
        program.program_type = "UG"
        program.application_start_date, program.application_end_date = APPLICATION_WINDOW
        program.is_active = True
        program.display_order = order
    db.session.commit()
    return created, updated


def main() -> None:
    app = create_app()
    with app.app_context():
        created, updated = seed_programs()
        total_seats = sum(item["total_seats"] for item in PROGRAMS)
        print(f"Programs created: {created}, updated: {updated}, total seats: {total_seats}")


if __name__ == "__main__":
    main()
