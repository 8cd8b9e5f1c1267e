# voting_app/security/input_validator.py

import html
import re
from datetime import datetime, timezone

import bleach

# Field validation and sanitisation for registration and election forms


class ValidationError(ValueError):
    pass


class InputValidator:
    def __init__(self):
        self.patterns = {
            'registration_number': re.compile(r'^[A-Za-z0-9/\-]{1,50}$'),
            'national_id': re.compile(r'^[A-Za-z0-9\-]{1,50}$'),
            'xss_script': re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL),
            'xss_event': re.compile(r'\bon\w+\s*=', re.IGNORECASE),
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValidationError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]

        sanitized = re.sub(self.patterns['xss_script'], '', input_str)
        sanitized = re.sub(self.patterns['xss_event'], '', sanitized)
        # Plain text only: bleach strips the markup, then its entity escaping is undone
        sanitized = bleach.clean(sanitized, tags=[], attributes={}, strip=True)
        return html.unescape(sanitized).strip()

    def require_fields(self, data, fields):
        """Return sanitised values for `fields`, raising if any is missing or blank."""
        values = {}
        for field in fields:
            value = data.get(field) if data else None
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError("All fields are required")
            values[field] = value if not isinstance(value, str) else value.strip()
        return values

    def validate_registration_number(self, value):
        return isinstance(value, str) and bool(self.patterns['registration_number'].match(value))

    def validate_national_id(self, value):
        return isinstance(value, str) and bool(self.patterns['national_id'].match(value))

    def parse_datetime(self, value):
        """Parse an ISO-8601 timestamp into naive UTC."""
        try:
            text = str(value).strip()
            # fromisoformat only accepts a trailing Z from Python 3.11
            if text.endswith(('Z', 'z')):
                text = text[:-1] + '+00:00'
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    def validate_election_window(self, start, end):
        start_at = self.parse_datetime(start)
        end_at = self.parse_datetime(end)
        if start_at >= end_at:
            raise ValidationError("Election start must be before its end")
        return start_at, end_at

    def allowed_image(self, filename, allowed_extensions):
        return (
            isinstance(filename, str)
            and '.' in filename
            and filename.rsplit('.', 1)[1].lower() in allowed_extensions
        )
