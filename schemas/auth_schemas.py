from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
import phonenumbers
from core.config import settings
from utils.documents import normalize_cpf, normalize_cpf_or_cnpj

PHONE_DEFAULT_REGION = "BR"


def _required_text(value: str, field: str, min_length: int = 1, max_length: int = 255) -> str:
    value = (value or "").strip()
    if len(value) < min_length or len(value) > max_length:
        raise ValueError(f'{field} deve ter entre {min_length} e {max_length} caracteres')
    return value


class LoginRequest(BaseModel):
    email: EmailStr
    senha: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower()

    @field_validator('senha')
    @classmethod
    def validate_senha(cls, value):
        if not value or not value.strip():
            raise ValueError('Senha requerida')
        return value


class RegisterStoreOwnerRequest(BaseModel):
    email: EmailStr
    senha: str
    nome_usuario: str
    cpf_usuario: str
    telefones: list[str] = Field(default_factory=list)
    nome_loja: str
    cnpj_cpf_loja: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower()

    @field_validator('senha')
    @classmethod
    def validate_senha(cls, value):
        if len(value or "") < 6:
            raise ValueError('Senha fraca (mínimo 6 caracteres)')
        return value

    @field_validator('nome_usuario')
    @classmethod
    def validate_nome_usuario(cls, value):
        return _required_text(value, 'Nome do usuário')

    @field_validator('nome_loja')
    @classmethod
    def validate_nome_loja(cls, value):
        return _required_text(value, 'Nome da loja')

    @field_validator('cpf_usuario')
    @classmethod
    def validate_cpf_usuario(cls, value):
        return normalize_cpf(value)

    @field_validator('cnpj_cpf_loja')
    @classmethod
    def validate_cnpj_cpf_loja(cls, value):
        if value is None or not value.strip():
            return None
        return normalize_cpf_or_cnpj(value)

    @field_validator('telefones')
    @classmethod
    def validate_telefones(cls, value):
        """
        At most MAX_PHONES numbers, validated with Google's phonenumbers.
        Numbers without a country code are read as Brazilian; all are
        stored as E.164.
        """
        if len(value) > settings.MAX_PHONES:
            raise ValueError(f'Máximo de {settings.MAX_PHONES} telefones permitidos')

        normalized = []
        for number in value:
            try:
                parsed = phonenumbers.parse(number, PHONE_DEFAULT_REGION)
            except phonenumbers.NumberParseException:
                raise ValueError(f'Telefone inválido: {number}')

            if not phonenumbers.is_valid_number(parsed):
                raise ValueError(f'Telefone inválido: {number}')

            normalized.append(phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164))

        return normalized


class SelectStoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile_id: int = Field(alias="profileId")


class SessionUser(BaseModel):
    """Public projection of the logged-in user. Never carries the password hash."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: str
    nome: str
    role: str
    loja_id: int = Field(alias="lojaId")
    telefones: list[str] = Field(default_factory=list)


class ProfileOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    loja_name: str = Field(alias="lojaName")
    cargo: str


class SessionResult(BaseModel):
    """
    Outcome of a session operation.

    ``profiles`` is set only for a multi-store login, in which case there is
    no refresh token and ``access_token`` is a pre-auth token.
    """
    access_token: str
    refresh_token: Optional[str] = None
    user: Optional[SessionUser] = None
    profiles: Optional[list[ProfileOption]] = None

    @property
    def multi_profile(self) -> bool:
        return self.profiles is not None


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    user: SessionUser


class PreAuthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    multi_profile: bool = Field(default=True, alias="multiProfile")
    profiles: list[ProfileOption]


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
