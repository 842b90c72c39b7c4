"""
Authorization Policy

A single place that decides what each role may do. The HTTP boundary asks
once per request; nothing below it checks roles again.
"""

ADMIN = "ADMIN"
USER = "USER"

PREVIEW_REPASSES = "repasses:previa"
RECTIFY_INSTALLMENT = "parcelas:retificar"
BUILD_SCHEDULE = "contratos:cronograma"
RENEGOTIATE_CONTRACT = "contratos:renegociar"
VIEW_OWN_PROFILE = "advogados:perfil"

ROLE_CAPABILITIES = {
    USER: frozenset({VIEW_OWN_PROFILE, BUILD_SCHEDULE}),
}


def normalize_role(role) -> str:
    return str(role or "").strip().upper()


def can(role, capability: str) -> bool:
    """True when `role` holds `capability`. ADMIN holds everything."""
    role = normalize_role(role)
    if role == ADMIN:
        return True
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
