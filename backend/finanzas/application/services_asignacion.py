"""
Motor de asignación de pagos (funciones puras, sin acceso a la base).

- DIRECT: todo el pago a una obligación; pagar de más se rechaza.
- FIFO: obligaciones del pagador, la más antigua primero; el excedente
  no se aplica y se informa como remanente.
"""
from decimal import Decimal
from typing import List

from pydantic import BaseModel

from ..domain.enums import EstadoPago
from .errors import ReglaNegocioError, ValidacionError
from .services_saldos import redondear, calcular_estado_pago


class ObligacionPendiente(BaseModel):
    id: int
    total: Decimal
    saldo_pendiente: Decimal


class Asignacion(BaseModel):
    id_obligacion: int
    saldo_anterior: Decimal
    monto_aplicado: Decimal
    saldo_nuevo: Decimal
    estado_nuevo: EstadoPago


class ResultadoAsignacion(BaseModel):
    asignaciones: List[Asignacion]
    total_aplicado: Decimal
    remanente: Decimal


class Tramo(BaseModel):
    """Parte de una asignación cubierta por una transacción concreta"""
    indice_transaccion: int
    id_obligacion: int
    monto: Decimal


def _asignar(obligacion: ObligacionPendiente, monto: Decimal) -> Asignacion:
    saldo_anterior = redondear(obligacion.saldo_pendiente)
    saldo_nuevo = redondear(saldo_anterior - monto)
    return Asignacion(
        id_obligacion=obligacion.id,
        saldo_anterior=saldo_anterior,
        monto_aplicado=monto,
        saldo_nuevo=saldo_nuevo,
        estado_nuevo=calcular_estado_pago(saldo_nuevo, obligacion.total),
    )


def asignar_directo(monto_pago, obligacion: ObligacionPendiente) -> ResultadoAsignacion:
    monto = redondear(monto_pago)
    pendiente = redondear(obligacion.saldo_pendiente)
    if monto <= 0:
        raise ValidacionError(["El monto del pago debe ser mayor a 0"])
    if pendiente <= 0:
        raise ReglaNegocioError(f"La obligación {obligacion.id} no tiene saldo pendiente")
    if monto > pendiente:
        raise ReglaNegocioError(
            f"El monto pagado ({monto}) no puede ser mayor al saldo pendiente ({pendiente})"
        )
    asignacion = _asignar(obligacion, min(monto, pendiente))
    return ResultadoAsignacion(
        asignaciones=[asignacion],
        total_aplicado=asignacion.monto_aplicado,
        remanente=redondear(monto - asignacion.monto_aplicado),
    )


def asignar_fifo(monto_pago, obligaciones: List[ObligacionPendiente]) -> ResultadoAsignacion:
    """
    Reparte el pago sobre `obligaciones`, que deben venir ordenadas
    (más antigua primero, empate por id). Las obligaciones sin aplicación
    no aparecen en el resultado.
    """
    restante = redondear(monto_pago)
    if restante <= 0:
        raise ValidacionError(["El monto del pago debe ser mayor a 0"])

    asignaciones = []
    for obligacion in obligaciones:
        if restante <= 0:
            break
        pendiente = redondear(obligacion.saldo_pendiente)
        if pendiente <= 0:
            continue
        tomar = min(restante, pendiente)
        asignaciones.append(_asignar(obligacion, tomar))
        restante = redondear(restante - tomar)

    total_aplicado = redondear(sum((a.monto_aplicado for a in asignaciones), Decimal("0")))
    return ResultadoAsignacion(asignaciones=asignaciones, total_aplicado=total_aplicado, remanente=restante)


def repartir_por_transaccion(montos_transacciones: List[Decimal], asignaciones: List[Asignacion]) -> List[Tramo]:
    """
    Cubre cada asignación con las transacciones en el orden de las líneas
    de pago. Cada par (transacción, obligación) aparece a lo sumo una vez.

    Ej: transacciones [80, 70] y asignaciones [100, 50]
        -> (t0, o1, 80), (t1, o1, 20), (t1, o2, 50)
    """
    disponibles = [redondear(m) for m in montos_transacciones]
    indice = 0
    tramos: List[Tramo] = []
    for asignacion in asignaciones:
        restante = redondear(asignacion.monto_aplicado)
        while restante > 0:
            if indice >= len(disponibles):
                raise ReglaNegocioError("El total aplicado supera el total de las transacciones")
            tomar = min(restante, disponibles[indice])
            if tomar > 0:
                tramos.append(Tramo(indice_transaccion=indice, id_obligacion=asignacion.id_obligacion, monto=tomar))
            disponibles[indice] = redondear(disponibles[indice] - tomar)
            restante = redondear(restante - tomar)
            if disponibles[indice] <= 0:
                indice += 1
    return tramos
