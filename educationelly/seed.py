"""Seed the database with demo teacher accounts and sample students.

Existing users (matched by email) and students (matched by studentId) are left
untouched, so the script can be re-run safely.

Usage:
    python -m educationelly.seed
"""
import logging
import sys
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educationelly.auth.passwords import hash_password
from educationelly.database import SessionLocal, init_db
from educationelly.models.student import Student
from educationelly.models.user import User

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {'email': 'demo@example.com', 'password': 'demopassword'},
    {'email': 'teacher1@example.com', 'password': 'password123'},
    {'email': 'teacher2@example.com', 'password': 'password123'},
    {'email': 'admin@example.com', 'password': 'password123'},
    {'email': 'demo2@example.com', 'password': 'demopassword'},
]


def _student(full_name, school, student_id, teacher, born, gender, race, grade, language, city, country, ell, level,
             designation='General Education'):
    return {
        'full_name': full_name,
        'school': school,
        'student_id': student_id,
        'teacher': teacher,
        'date_of_birth': born,
        'gender': gender,
        'race': race,
        'grade_level': grade,
        'native_language': language,
        'city_of_birth': city,
        'country_of_birth': country,
        'ell_status': ell,
        'composite_level': level,
        'active': True,
        'designation': designation,
    }


SAMPLE_STUDENTS = [
    _student('Maria Rodriguez', 'Lincoln Elementary', 12345, 'Ms. Johnson', date(2012, 3, 15), 'Female', 'Hispanic',
             5, 'Spanish', 'Mexico City', 'Mexico', 'ELL', 'Intermediate'),
    _student('Yuki Tanaka', 'Lincoln Elementary', 12346, 'Mr. Davis', date(2013, 7, 22), 'Male', 'Asian',
             4, 'Japanese', 'Tokyo', 'Japan', 'ELL', 'Beginning'),
    _student('Ahmed Hassan', 'Washington Middle School', 12347, 'Mrs. Smith', date(2011, 11, 8), 'Male',
             'Middle Eastern', 6, 'Arabic', 'Cairo', 'Egypt', 'ELL', 'Intermediate', 'Special Education'),
    _student('Ling Chen', 'Washington Middle School', 12348, 'Mr. Thompson', date(2010, 2, 28), 'Female', 'Asian',
             7, 'Mandarin', 'Beijing', 'China', 'Former ELL', 'Advanced'),
    _student('Sofia Petrov', 'Lincoln Elementary', 12349, 'Ms. Johnson', date(2012, 9, 12), 'Female', 'White',
             5, 'Russian', 'Moscow', 'Russia', 'ELL', 'Intermediate'),
    _student('Jean-Pierre Dubois', 'Roosevelt High School', 12350, 'Mr. Anderson', date(2008, 4, 30), 'Male', 'Black',
             9, 'French', 'Port-au-Prince', 'Haiti', 'ELL', 'Advanced'),
    _student('Fatima Al-Rashid', 'Washington Middle School', 12351, 'Mrs. Smith', date(2011, 6, 18), 'Female',
             'Middle Eastern', 6, 'Arabic', 'Damascus', 'Syria', 'ELL', 'Beginning'),
    _student('Carlos Mendez', 'Roosevelt High School', 12352, 'Ms. Martinez', date(2007, 12, 3), 'Male', 'Hispanic',
             10, 'Spanish', 'Guatemala City', 'Guatemala', 'Former ELL', 'Proficient'),
    _student('Min-Ji Park', 'Lincoln Elementary', 12353, 'Mr. Davis', date(2013, 10, 25), 'Female', 'Asian',
             4, 'Korean', 'Seoul', 'South Korea', 'ELL', 'Beginning'),
    _student('Oluwaseun Adeyemi', 'Roosevelt High School', 12354, 'Mr. Anderson', date(2008, 8, 14), 'Male', 'Black',
             9, 'Yoruba', 'Lagos', 'Nigeria', 'ELL', 'Intermediate'),
]


def seed_users(db: Session) -> int:
    created = 0
    for user_data in DEMO_USERS:
        if db.query(User).filter(User.email == user_data['email']).first():
            continue
        db.add(User(email=user_data['email'], hashed_password=hash_password(user_data['password'])))
        created += 1
    db.commit()
    return created


def seed_students(db: Session) -> int:
    created = 0
    for student_data in SAMPLE_STUDENTS:
        if db.query(Student).filter(Student.student_id == student_data['student_id']).first():
            continue
        db.add(Student(**student_data))
        created += 1
    db.commit()
    return created


def main() -> int:
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    init_db()
    db = SessionLocal()
    try:
        logger.info('Created %d new users', seed_users(db))
        logger.info('Created %d new students', seed_students(db))
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Error seeding database')
        return 1
    finally:
        db.close()

    logger.info('Database seeded successfully. Sample login: demo@example.com / demopassword')
    return 0


if __name__ == '__main__':
    sys.exit(main())
