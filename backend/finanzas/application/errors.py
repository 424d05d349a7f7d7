"""
Errores del motor de pagos

Cada error lleva un `kind` (ErrorKind) y un payload propio del tipo, para que
la capa HTTP lo traduzca sin inspeccionar mensajes.
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List


class ErrorKind(str, Enum):
    VALIDACION = "VALIDACION"
    NO_ENCONTRADO = "NO_ENCONTRADO"
    REGLA_NEGOCIO = "REGLA_NEGOCIO"
    CUENTA_NO_ENCONTRADA = "CUENTA_NO_ENCONTRADA"
    SALDO_INSUFICIENTE = "SALDO_INSUFICIENTE"
    CONVERSION_NO_SOPORTADA = "CONVERSION_NO_SOPORTADA"


class FinanzasError(Exception):
    """Excepción base para errores del motor"""
    kind: ErrorKind = ErrorKind.REGLA_NEGOCIO

    def payload(self) -> Dict[str, Any]:
        return {}


class ValidacionError(FinanzasError):
    """Datos de entrada mal formados. Se detecta antes de abrir la transacción."""
    kind = ErrorKind.VALIDACION

    def __init__(self, errores: List[str]):
        self.errores = list(errores)
        super().__init__("Validación fallida: " + "; ".join(self.errores))

    def payload(self) -> Dict[str, Any]:
        return {"errores": self.errores}


class NoEncontradoError(FinanzasError):
    """Entidad referenciada inexistente"""
    kind = ErrorKind.NO_ENCONTRADO

    def __init__(self, entidad: str, id_entidad: Any):
        self.entidad = entidad
        self.id_entidad = id_entidad
        super().__init__(f"{entidad} {id_entidad} no encontrado")

    def payload(self) -> Dict[str, Any]:
        return {"entidad": self.entidad, "id": self.id_entidad}


class ReglaNegocioError(FinanzasError):
    """Operación válida en forma pero no permitida por las reglas del negocio"""
    kind = ErrorKind.REGLA_NEGOCIO

    def __init__(self, mensaje: str):
        self.mensaje = mensaje
        super().__init__(mensaje)

    def payload(self) -> Dict[str, Any]:
        return {"mensaje": self.mensaje}


class CuentaNoEncontradaError(FinanzasError):
    """No existe cuenta activa para método + moneda"""
    kind = ErrorKind.CUENTA_NO_ENCONTRADA

    def __init__(self, nombre_cuenta: str, metodo_pago: str | None = None, moneda: str | None = None):
        self.nombre_cuenta = nombre_cuenta
        self.metodo_pago = metodo_pago
        self.moneda = moneda
        super().__init__(f"No existe una cuenta activa '{nombre_cuenta}'")

    def payload(self) -> Dict[str, Any]:
        return {"cuenta": self.nombre_cuenta, "metodo_pago": self.metodo_pago, "moneda": self.moneda}


class SaldoInsuficienteError(FinanzasError):
    kind = ErrorKind.SALDO_INSUFICIENTE

    def __init__(self, cuenta: str, disponible: Decimal, requerido: Decimal, moneda: str):
        self.cuenta = cuenta
        self.disponible = disponible
        self.requerido = requerido
        self.moneda = moneda
        super().__init__(
            f"Saldo insuficiente en {cuenta}. "
            f"Disponible: {disponible:.2f} {moneda}, Requerido: {requerido:.2f} {moneda}"
        )

    def payload(self) -> Dict[str, Any]:
        return {
            "cuenta": self.cuenta,
            "disponible": str(self.disponible),
            "requerido": str(self.requerido),
            "moneda": self.moneda,
        }


class ConversionNoSoportadaError(FinanzasError):
    kind = ErrorKind.CONVERSION_NO_SOPORTADA

    def __init__(self, moneda_origen: str, moneda_destino: str):
        self.moneda_origen = moneda_origen
        self.moneda_destino = moneda_destino
        super().__init__(f"Conversión no soportada: {moneda_origen} -> {moneda_destino}")

    def payload(self) -> Dict[str, Any]:
        return {"moneda_origen": self.moneda_origen, "moneda_destino": self.moneda_destino}
