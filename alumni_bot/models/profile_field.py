# Role: Central enum of editable profile fields. Keeps the system consistent across:
# wait-states, classifier output, field validators, and the profile completion flow.

from enum import Enum


class ProfileField(str, Enum):
    # Declaration order is the order the completion flow asks for fields.
    ADDRESS = "address"
    LINKEDIN = "linkedin"
    INSTAGRAM = "instagram"
    FULL_NAME = "full_name"
    PHONE = "phone"
    EMAIL = "email"
