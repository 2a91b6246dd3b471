"""Database seeding service for demo data."""
from datetime import time, timedelta

from churchconnect import db
from churchconnect.models import (
    AttendanceRecord, CheckInMethod, Church, ChurchUser, UserRole, Member,
    Gender, AgeGroup, Event, EventType, Visitor, SubscriptionTier
)
from churchconnect.utils.helpers import today

class SeedService:
    """Service to seed database with a demo church."""

    DEMO_SUBDOMAIN = 'grace-chapel'
    DEMO_EMAIL = 'admin@gracechapel.org'
    DEMO_PASSWORD = 'gracechapel123'

    @staticmethod
    def seed_all():
        """Seed all demo data, returning the church and its admin."""
        church = Church.query.filter_by(subdomain=SeedService.DEMO_SUBDOMAIN).first()
        if church:
            print(f"Demo church already exists ({church.subdomain})")
            return church, ChurchUser.query.filter_by(email=SeedService.DEMO_EMAIL).first()

        church, admin = SeedService.seed_church()
        SeedService.seed_staff(church)
        events = SeedService.seed_events(church, admin)
        members = SeedService.seed_members(church)
        SeedService.seed_visitors(church)
        SeedService.seed_attendance(church, members, events[0])
        return church, admin

    @staticmethod
    def seed_church():
        church = Church(
            name='Grace Chapel',
            subdomain=SeedService.DEMO_SUBDOMAIN,
            brand_color='#6366f1',
            max_members=500,
            kiosk_mode_enabled=True,
            kiosk_session_timeout=60
        )
        church.start_trial(30)
        church.subscription_tier = SubscriptionTier.ENTERPRISE
        db.session.add(church)
        db.session.flush()

        admin = ChurchUser(
            church_id=church.id,
            email=SeedService.DEMO_EMAIL,
            first_name='Grace',
            last_name='Admin',
            role=UserRole.ADMIN
        )
        admin.set_password(SeedService.DEMO_PASSWORD)
        db.session.add(admin)
        db.session.commit()
        print(f"Created church {church.name}")
        return church, admin

    @staticmethod
    def seed_staff(church):
        staff_data = [
            ('Victor', 'Volunteer', 'volunteer@gracechapel.org', UserRole.VOLUNTEER),
            ('Dana', 'Viewer', 'viewer@gracechapel.org', UserRole.DATA_VIEWER),
        ]
        for first_name, last_name, email, role in staff_data:
            user = ChurchUser(
                church_id=church.id,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=role
            )
            user.set_password(SeedService.DEMO_PASSWORD)
            db.session.add(user)

        db.session.commit()
        print(f"Created {len(staff_data)} staff users")

    @staticmethod
    def seed_events(church, admin):
        events_data = [
            ('Sunday Service', EventType.SUNDAY_SERVICE, 'Main Hall', time(9, 0), time(11, 30)),
            ('Midweek Bible Study', EventType.BIBLE_STUDY, 'Room 2', time(18, 30), time(20, 0)),
            ('Youth Night', EventType.YOUTH_SERVICE, 'Youth Center', time(19, 0), time(21, 0)),
        ]
        events = []
        for name, event_type, location, start, end in events_data:
            event = Event(
                church_id=church.id,
                name=name,
                event_type=event_type,
                location=location,
                start_time=start,
                end_time=end,
                is_recurring=True,
                recurrence_pattern='weekly',
                created_by=admin.id
            )
            db.session.add(event)
            events.append(event)

        db.session.commit()
        print(f"Created {len(events)} events")
        return events

    @staticmethod
    def seed_members(church):
        families = [
            ('Mr', 'John', 'Mensah', Gender.MALE, [('Kofi', Gender.MALE, AgeGroup.CHILD), ('Ama', Gender.FEMALE, AgeGroup.ADOLESCENT)]),
            ('Mrs', 'Grace', 'Okafor', Gender.FEMALE, [('Chidi', Gender.MALE, AgeGroup.CHILD)]),
            ('Mr', 'Samuel', 'Adeyemi', Gender.MALE, []),
            ('Miss', 'Ruth', 'Boateng', Gender.FEMALE, []),
        ]
        members = []
        for index, (title, first_name, surname, gender, children) in enumerate(families):
            parent = Member(
                church_id=church.id,
                title=title,
                first_name=first_name,
                surname=surname,
                gender=gender,
                age_group=AgeGroup.ADULT,
                phone=f'+44 7700 900{index:03d}',
                email=f'{first_name.lower()}.{surname.lower()}@example.com'
            )
            db.session.add(parent)
            db.session.flush()
            members.append(parent)

            for child_name, child_gender, age_group in children:
                child = Member(
                    church_id=church.id,
                    first_name=child_name,
                    surname=surname,
                    gender=child_gender,
                    age_group=age_group,
                    parent_id=parent.id
                )
                db.session.add(child)
                members.append(child)

        db.session.commit()
        print(f"Created {len(members)} members")
        return members

    @staticmethod
    def seed_visitors(church):
        visitor = Visitor(
            church_id=church.id,
            name='Esther Owusu',
            gender=Gender.FEMALE,
            age_group=AgeGroup.ADULT,
            phone='+44 7700 900999',
            how_did_you_hear_about_us='Friend',
            visit_date=today()
        )
        db.session.add(visitor)
        db.session.commit()
        print("Created 1 visitor")

    @staticmethod
    def seed_attendance(church, members, event):
        """Two past Sundays of attendance for the first few members."""
        created = 0
        for weeks_ago in (1, 2):
            attendance_date = today() - timedelta(weeks=weeks_ago)
            for member in members[:4]:
                db.session.add(AttendanceRecord(
                    church_id=church.id,
                    member_id=member.id,
                    event_id=event.id,
                    attendance_date=attendance_date,
                    check_in_method=CheckInMethod.MANUAL
                ))
                created += 1

        db.session.commit()
        print(f"Created {created} attendance records")
