from showreel.models.contact import ContactSettings
from showreel.schemas.base import BaseDTO


class PublicContactSettingsDTO(BaseDTO):
    cta_text: str
    form_enabled: bool

    @classmethod
    def from_orm_model(cls, settings: ContactSettings) -> "PublicContactSettingsDTO":
        return cls(cta_text=settings.cta_text, form_enabled=settings.form_enabled)


class ContactSettingsDTO(PublicContactSettingsDTO):
    destination_email: str

    @classmethod
    def from_orm_model(cls, settings: ContactSettings) -> "ContactSettingsDTO":
        return cls(
            cta_text=settings.cta_text,
            form_enabled=settings.form_enabled,
            destination_email=settings.destination_email,
        )
