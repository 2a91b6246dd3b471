"""Member management service."""
import math
from typing import Dict, List, Optional

import pandas as pd
from flask import current_app
from sqlalchemy import or_

from churchconnect import db
from churchconnect.models import (
    AttendanceRecord, FollowUpRecord, Member, Visitor, Gender, AgeGroup
)
from churchconnect.services.feature_service import FeatureService
from churchconnect.utils.errors import (
    FeatureNotAvailableError, NotFoundError, ValidationError
)
from churchconnect.utils.helpers import parse_bool, parse_date, utcnow
from churchconnect.utils.validators import Validator, ensure_valid

GENDERS = [g.value for g in Gender]
AGE_GROUPS = [a.value for a in AgeGroup]

# Request field -> column
MEMBER_FIELDS = {
    'title': 'title',
    'firstName': 'first_name',
    'surname': 'surname',
    'gender': 'gender',
    'ageGroup': 'age_group',
    'phone': 'phone',
    'email': 'email',
    'whatsappNumber': 'whatsapp_number',
    'address': 'address',
    'dateOfBirth': 'date_of_birth',
    'weddingAnniversary': 'wedding_anniversary',
    'isCurrentMember': 'is_current_member',
    'parentId': 'parent_id',
}

# Spreadsheet headers accepted by the importer
IMPORT_COLUMNS = {
    'title': 'title',
    'first_name': 'firstName', 'firstname': 'firstName',
    'surname': 'surname', 'last_name': 'surname', 'lastname': 'surname',
    'gender': 'gender',
    'age_group': 'ageGroup', 'agegroup': 'ageGroup',
    'phone': 'phone',
    'email': 'email',
    'whatsapp_number': 'whatsappNumber', 'whatsappnumber': 'whatsappNumber',
    'address': 'address',
    'date_of_birth': 'dateOfBirth', 'dateofbirth': 'dateOfBirth',
    'wedding_anniversary': 'weddingAnniversary', 'weddinganniversary': 'weddingAnniversary',
    'is_current_member': 'isCurrentMember', 'iscurrentmember': 'isCurrentMember',
}

class MemberService:
    """Service for managing members."""

    @staticmethod
    def _clean(data: Dict) -> Dict:
        """Treat empty strings as absent values."""
        return {key: (None if value == '' else value) for key, value in data.items()}

    @staticmethod
    def _validate(church_id: int, data: Dict, member: Optional[Member] = None) -> Dict:
        """Validate request fields and map them onto columns."""
        partial = member is not None
        results = []

        for field, label in (('firstName', 'First name'), ('surname', 'Surname')):
            if not partial or field in data:
                results.append(Validator.validate_name(data.get(field), label))
        if not partial or 'gender' in data:
            results.append(Validator.validate_choice(data.get('gender'), GENDERS, 'Gender'))
        if not partial or 'ageGroup' in data:
            results.append(Validator.validate_choice(data.get('ageGroup'), AGE_GROUPS, 'Age group'))
        for field in ('dateOfBirth', 'weddingAnniversary'):
            if data.get(field):
                results.append(Validator.validate_past_date(data[field], field))
        ensure_valid(*results)

        for field in ('phone', 'whatsappNumber'):
            if data.get(field) and not Validator.validate_phone(str(data[field])):
                raise ValidationError(f"Invalid {field} format")
        if data.get('email') and not Validator.validate_email(data['email']):
            raise ValidationError("Invalid email format")

        parent_id = data.get('parentId')
        if parent_id is not None:
            try:
                parent_id = int(parent_id)
            except (TypeError, ValueError):
                raise ValidationError("Invalid parentId")
            if member is not None and parent_id == member.id:
                raise ValidationError("A member cannot be their own parent")
            if not Member.get_for_church(parent_id, church_id):
                raise ValidationError("Parent member not found in this church")

        values = {}
        for field, column in MEMBER_FIELDS.items():
            if field not in data:
                continue
            value = data[field]
            if column == 'gender' and value is not None:
                value = Gender(value)
            elif column == 'age_group' and value is not None:
                value = AgeGroup(value)
            elif column in ('date_of_birth', 'wedding_anniversary') and value:
                value = parse_date(value, field)
            elif column == 'is_current_member':
                value = True if value is None else parse_bool(value)
            elif column == 'parent_id':
                value = parent_id
            elif isinstance(value, str):
                value = value.strip()
            values[column] = value
        return values

    @staticmethod
    def ensure_capacity(church, count: int = 1) -> None:
        if not FeatureService.can_add_members(church, count):
            current = church.member_count()
            raise FeatureNotAvailableError(
                f"You have reached your member limit of {church.max_members}. "
                "Please upgrade your subscription to add more members.",
                currentCount=current,
                limit=church.max_members
            )

    @staticmethod
    def create_member(church, data: Dict, commit: bool = True) -> Member:
        data = MemberService._clean(data)
        values = MemberService._validate(church.id, data)
        MemberService.ensure_capacity(church)

        member = Member(church_id=church.id, **values)
        db.session.add(member)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return member

    @staticmethod
    def update_member(church_id: int, member_id: int, data: Dict) -> Member:
        member = MemberService.get_member(church_id, member_id)
        data = MemberService._clean(data)
        values = MemberService._validate(church_id, data, member=member)
        member.update(**values)
        return member

    @staticmethod
    def get_member(church_id: int, member_id: int) -> Member:
        member = Member.get_for_church(member_id, church_id)
        if not member:
            raise NotFoundError("Member not found")
        return member

    @staticmethod
    def delete_member(church_id: int, member_id: int) -> None:
        """Delete a member; children are unlinked, own records removed."""
        member = MemberService.get_member(church_id, member_id)

        Member.query.filter_by(parent_id=member.id).update(
            {Member.parent_id: None}, synchronize_session=False
        )
        AttendanceRecord.query.filter_by(member_id=member.id).delete(synchronize_session=False)
        FollowUpRecord.query.filter_by(member_id=member.id).delete(synchronize_session=False)
        Visitor.query.filter_by(member_id=member.id).update(
            {Visitor.member_id: None}, synchronize_session=False
        )
        db.session.delete(member)
        db.session.commit()

        current_app.logger.info('Deleted member %s from church %s', member_id, church_id)

    @staticmethod
    def list_members(
        church_id: int,
        search: Optional[str] = None,
        gender: Optional[str] = None,
        age_group: Optional[str] = None,
        is_current_member: Optional[str] = None
    ) -> List[Member]:
        query = Member.for_church(church_id)

        if search:
            query = MemberService._apply_search(query, search)
        if gender:
            if gender not in GENDERS:
                raise ValidationError("Invalid gender filter")
            query = query.filter(Member.gender == Gender(gender))
        if age_group:
            if age_group not in AGE_GROUPS:
                raise ValidationError("Invalid ageGroup filter")
            query = query.filter(Member.age_group == AgeGroup(age_group))
        if is_current_member not in (None, ''):
            query = query.filter(Member.is_current_member == parse_bool(is_current_member))

        return query.order_by(Member.first_name, Member.surname).all()

    @staticmethod
    def _apply_search(query, search: str):
        pattern = f'%{search.strip()}%'
        return query.filter(or_(
            Member.first_name.ilike(pattern),
            Member.surname.ilike(pattern),
            Member.phone.ilike(pattern),
            Member.email.ilike(pattern),
        ))

    @staticmethod
    def search_current_members(church_id: int, search: Optional[str] = None) -> List[Member]:
        """Current members, optionally filtered, for self-service pages."""
        query = Member.for_church(church_id).filter(Member.is_current_member.is_(True))
        if search and search.strip():
            query = MemberService._apply_search(query, search)
        return query.order_by(Member.first_name, Member.surname).all()

    @staticmethod
    def children(church_id: int, member_id: int) -> List[Member]:
        return MemberService.get_member(church_id, member_id).ordered_children()

    @staticmethod
    def enroll_fingerprint(church_id: int, member_id, fingerprint_id: Optional[str] = None) -> Dict:
        if member_id is None:
            raise ValidationError("memberId is required")
        member = MemberService.get_member(church_id, member_id)

        fingerprint_id = fingerprint_id or f'fp_{member.id}_{int(utcnow().timestamp() * 1000)}'
        member.update(fingerprint_id=fingerprint_id)
        return {'success': True, 'fingerprintId': fingerprint_id}

    @staticmethod
    def read_import_file(file_storage) -> pd.DataFrame:
        """Load an uploaded CSV or Excel sheet."""
        filename = (file_storage.filename or '').lower()
        extension = filename.rsplit('.', 1)[-1] if '.' in filename else ''
        if extension not in current_app.config['ALLOWED_IMPORT_EXTENSIONS']:
            raise ValidationError("Invalid file type. Please upload CSV or Excel file")

        try:
            if extension == 'csv':
                return pd.read_csv(file_storage, dtype=str)
            return pd.read_excel(file_storage, dtype=str)
        except (ValueError, pd.errors.ParserError) as error:
            raise ValidationError(f"Could not read file: {error}")

    @staticmethod
    def dataframe_to_rows(df: pd.DataFrame) -> List[Dict]:
        """Normalise headers and drop NaN cells."""
        renamed = {}
        for column in df.columns:
            key = str(column).strip().lower().replace(' ', '_')
            if key in IMPORT_COLUMNS:
                renamed[column] = IMPORT_COLUMNS[key]
        df = df.rename(columns=renamed)[list(renamed.values())]

        rows = []
        for record in df.to_dict(orient='records'):
            rows.append({
                key: value for key, value in record.items()
                if not (isinstance(value, float) and math.isnan(value))
            })
        return rows

    @staticmethod
    def create_members_bulk(church, rows: List[Dict]) -> Dict:
        """Create members row by row; one bad row never aborts the others."""
        if not rows:
            raise ValidationError("No members data provided")

        MemberService.ensure_capacity(church, 1)

        results = []
        created = 0
        for index, row in enumerate(rows):
            name = f"{row.get('firstName', '')} {row.get('surname', '')}".strip() or 'Unknown'
            try:
                member = MemberService.create_member(church, row, commit=False)
                db.session.commit()
                created += 1
                results.append({'row': index + 2, 'name': name, 'success': True, 'memberId': member.id})
            except (ValidationError, FeatureNotAvailableError) as error:
                db.session.rollback()
                results.append({'row': index + 2, 'name': name, 'success': False, 'error': error.message})

        current_app.logger.info('Bulk upload for church %s: %s/%s created', church.id, created, len(rows))
        return {
            'created': created,
            'total': len(rows),
            'results': results,
            'errors': [f"Row {r['row']} ({r['name']}): {r['error']}" for r in results if not r['success']] or None,
        }
