"""Church settings and branding."""
import os
from typing import Dict

from flask import current_app

from churchconnect.models import Church
from churchconnect.utils.errors import ValidationError
from churchconnect.utils.helpers import utcnow
from churchconnect.utils.validators import Validator, ensure_valid

BRANDING_FOLDER = 'church-branding'
BRANDING_FIELDS = ('logo', 'banner')

class ChurchService:
    """Service for church-level settings."""

    @staticmethod
    def _check_color(color) -> None:
        if color is not None and not Validator.validate_hex_color(color):
            raise ValidationError("brandColor must be a hex color like #1a2b3c")

    @staticmethod
    def update_settings(church: Church, data: Dict) -> Church:
        values = {}
        if 'name' in data:
            ensure_valid(Validator.validate_name(data['name'], 'Church name'))
            values['name'] = data['name'].strip()
        if 'logoUrl' in data:
            values['logo_url'] = data['logoUrl'] or None
        if 'brandColor' in data:
            ChurchService._check_color(data['brandColor'])
            values['brand_color'] = data['brandColor'] or current_app.config['DEFAULT_BRAND_COLOR']

        church.update(**values)
        current_app.logger.info('Settings updated for church %s', church.id)
        return church

    @staticmethod
    def branding(church: Church) -> Dict:
        return {
            'logoUrl': church.logo_url,
            'bannerUrl': church.banner_url,
            'brandColor': church.brand_color,
        }

    @staticmethod
    def update_branding(church: Church, data: Dict) -> Dict:
        values = {}
        for field, column in (('logoUrl', 'logo_url'), ('bannerUrl', 'banner_url')):
            if field in data:
                values[column] = data[field] or None
        if 'brandColor' in data:
            ChurchService._check_color(data['brandColor'])
            values['brand_color'] = data['brandColor'] or current_app.config['DEFAULT_BRAND_COLOR']

        church.update(**values)
        return ChurchService.branding(church)

    @staticmethod
    def upload_branding(church: Church, files) -> Dict:
        """Store uploaded logo and banner images and point the church at them."""
        uploads = {field: files[field] for field in BRANDING_FIELDS if field in files and files[field].filename}
        if not uploads:
            raise ValidationError("No logo or banner file provided")

        allowed = current_app.config['ALLOWED_IMAGE_EXTENSIONS']
        for field, file_storage in uploads.items():
            extension = os.path.splitext(file_storage.filename)[1].lower()
            if extension.lstrip('.') not in allowed:
                raise ValidationError(f"Invalid {field} file type. Allowed: {', '.join(sorted(allowed))}")

        folder = os.path.join(os.path.abspath(current_app.config['UPLOAD_FOLDER']), BRANDING_FOLDER)
        os.makedirs(folder, exist_ok=True)

        timestamp = int(utcnow().timestamp() * 1000)
        values = {}
        for field, file_storage in uploads.items():
            extension = os.path.splitext(file_storage.filename)[1].lower()
            filename = f'{church.id}-{field}-{timestamp}{extension}'
            file_storage.save(os.path.join(folder, filename))
            values[f'{field}_url'] = f'/uploads/{BRANDING_FOLDER}/{filename}'

        church.update(**values)
        current_app.logger.info('Branding uploaded for church %s: %s', church.id, ', '.join(uploads))
        return ChurchService.branding(church)
