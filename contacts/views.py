from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from core.api import OwnedCollectionView, OwnedObjectView
from core.payloads import Field, moment, short_text, text

from .models import Contact


def _email(value) -> str:
    value = text(value, max_length=254)
    if value:
        try:
            validate_email(value)
        except DjangoValidationError:
            raise ValueError("must be an email address")
    return value


def _phone(value) -> str:
    return text(value, max_length=50)


CONTACT_FIELDS = {
    "name": Field("name", short_text, required=True),
    "email": Field("email", _email),
    "phone": Field("phone", _phone),
    "birthday": Field("birthday", moment),
    "notes": Field("notes", text),
    "category": Field("category", short_text),
}


def _contact_json(contact: Contact) -> dict:
    return {
        "id": contact.pk,
        "userId": contact.user_id,
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "birthday": contact.birthday,
        "notes": contact.notes,
        "category": contact.category,
    }


class ContactListView(OwnedCollectionView):
    model = Contact
    fields = CONTACT_FIELDS
    ordering = ("name", "id")

    def serialize(self, obj):
        return _contact_json(obj)


class ContactDetailView(OwnedObjectView):
    model = Contact
    fields = CONTACT_FIELDS
    label = "Contact"

    def serialize(self, obj):
        return _contact_json(obj)
