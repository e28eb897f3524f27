"""Fehlerarten des Occurrence-Resolvers.

Keiner dieser Fehler ist für einen kompletten Monatsaufbau fatal: der
Assembler fängt sie pro Klasse bzw. pro Ausnahme ab und protokolliert sie als
Warnung (siehe resolver.assembler).
"""


class ResolverError(Exception):
    """Basisklasse aller Resolver-Fehler."""

    kind = "ResolverError"


class ParseError(ResolverError, ValueError):
    """Uhrzeit-String lässt sich nicht interpretieren."""

    kind = "ParseError"


class InvalidExceptionError(ResolverError):
    """Ausnahme verweist auf unbekannte Klasse oder ist unvollständig."""

    kind = "InvalidExceptionError"


class InvalidPaymentConfigError(ResolverError):
    """Unbekannter Zahlungstyp oder fehlendes Pflichtfeld."""

    kind = "InvalidPaymentConfigError"


class TimezoneConversionError(ResolverError):
    """Zeitzonen-Bezeichner ist nicht auflösbar."""

    kind = "TimezoneConversionError"
