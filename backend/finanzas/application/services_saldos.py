"""
Lectura del libro de deudas: pagado, pendiente y estado derivado.

Todas las cifras monetarias se redondean a 2 decimales (ROUND_HALF_UP)
después de cada operación aritmética.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import EstadoPago, TipoObligacion
from ..domain.models_obligaciones import Venta
from .dtos import EstadoObligacionOut, ObligacionPendienteOut, ClienteDeudaOut
from .errors import NoEncontradoError

CENTAVO = Decimal("0.01")
TOLERANCIA = Decimal("0.01")


def redondear(valor) -> Decimal:
    """Redondea a centavos. Acepta Decimal, int, str o None."""
    if valor is None:
        return Decimal("0.00")
    if not isinstance(valor, Decimal):
        valor = Decimal(str(valor))
    return valor.quantize(CENTAVO, rounding=ROUND_HALF_UP)


def calcular_estado_pago(pendiente, total) -> EstadoPago:
    pendiente = redondear(pendiente)
    total = redondear(total)
    if pendiente <= 0:
        return EstadoPago.PAGADO
    if pendiente < total:
        return EstadoPago.PARCIAL
    return EstadoPago.PENDIENTE


def obtener_obligacion(uow: UnitOfWork, tipo: TipoObligacion, id_obligacion: int, lock: bool = False):
    """Venta o Gasto por id. Con lock=True bloquea la fila (SELECT ... FOR UPDATE)."""
    repo = uow.ventas if tipo == TipoObligacion.VENTA else uow.gastos
    obligacion = repo.get_for_update(id_obligacion) if lock else repo.get(id_obligacion)
    if not obligacion:
        raise NoEncontradoError(tipo.value.capitalize(), id_obligacion)
    return obligacion


def total_obligacion(obligacion) -> Decimal:
    if isinstance(obligacion, Venta):
        return redondear(obligacion.total)
    return redondear(obligacion.monto_total)


def fecha_obligacion(obligacion):
    return obligacion.fecha_venta if isinstance(obligacion, Venta) else obligacion.fecha


def total_aplicado(uow: UnitOfWork, tipo: TipoObligacion, id_obligacion: int) -> Decimal:
    if tipo == TipoObligacion.VENTA:
        return uow.aplicaciones.total_aplicado(id_venta=id_obligacion)
    return uow.aplicaciones.total_aplicado(id_gasto=id_obligacion)


def estado_obligacion(uow: UnitOfWork, tipo: TipoObligacion, id_obligacion: int) -> EstadoObligacionOut:
    """
    Estado de una obligación: total, pagado (SUM de aplicaciones),
    pendiente (columna) y estado derivado. Solo lectura.
    """
    obligacion = obtener_obligacion(uow, tipo, id_obligacion)
    total = total_obligacion(obligacion)
    pendiente = redondear(obligacion.saldo_pendiente)
    if obligacion.estado == EstadoPago.CANCELADO.value:
        estado = EstadoPago.CANCELADO
    else:
        estado = calcular_estado_pago(pendiente, total)
    return EstadoObligacionOut(
        tipo=tipo,
        id=obligacion.id,
        moneda=obligacion.moneda,
        total=total,
        pagado=total_aplicado(uow, tipo, obligacion.id),
        pendiente=pendiente,
        estado=estado.value,
    )


def a_pendiente_out(tipo: TipoObligacion, obligacion) -> ObligacionPendienteOut:
    return ObligacionPendienteOut(
        tipo=tipo,
        id=obligacion.id,
        fecha=fecha_obligacion(obligacion),
        moneda=obligacion.moneda,
        total=total_obligacion(obligacion),
        saldo_pendiente=redondear(obligacion.saldo_pendiente),
        estado=obligacion.estado,
        fecha_vencimiento=obligacion.fecha_vencimiento,
        id_cliente=getattr(obligacion, "id_cliente", None),
    )


def obligaciones_pendientes(uow: UnitOfWork, tipo: TipoObligacion, id_cliente: Optional[int] = None,
                            moneda: Optional[str] = None) -> List[ObligacionPendienteOut]:
    """Obligaciones con saldo > 0, más antigua primero y empate por id ascendente"""
    if tipo == TipoObligacion.VENTA:
        filas = uow.ventas.pendientes(id_cliente=id_cliente, moneda=moneda)
    else:
        filas = uow.gastos.pendientes(moneda=moneda)
    return [a_pendiente_out(tipo, o) for o in filas]


def deuda_cliente(uow: UnitOfWork, id_cliente: int, moneda: str) -> Decimal:
    """Saldo pendiente del cliente en UNA moneda (los saldos UYU y USD no se suman)"""
    filas = uow.ventas.deuda_por_cliente(id_cliente, moneda=moneda)
    return filas[0][2] if filas else Decimal("0.00")


def clientes_con_deuda(uow: UnitOfWork, moneda: Optional[str] = None) -> List[ClienteDeudaOut]:
    """Una fila por cliente y moneda; dentro de cada moneda, mayor deuda primero"""
    resultado = []
    for id_cliente, moneda_venta, saldo, cantidad in uow.ventas.deuda_por_cliente(moneda=moneda):
        cliente = uow.clientes.get(id_cliente)
        resultado.append(ClienteDeudaOut(
            id_cliente=id_cliente,
            cliente_nombre=cliente.nombre_completo if cliente else str(id_cliente),
            moneda=moneda_venta,
            saldo_pendiente=saldo,
            ventas_pendientes=cantidad,
        ))
    return sorted(resultado, key=lambda c: (c.moneda, -c.saldo_pendiente))


def verificar_consistencia(uow: UnitOfWork, tipo: TipoObligacion, id_obligacion: int) -> dict:
    """
    Verifica los invariantes de una obligación:
    - pagado + pendiente == total (±0.01)
    - pendiente >= 0
    - estado almacenado == estado derivado
    """
    obligacion = obtener_obligacion(uow, tipo, id_obligacion)
    total = total_obligacion(obligacion)
    pendiente = redondear(obligacion.saldo_pendiente)
    pagado = total_aplicado(uow, tipo, id_obligacion)
    diferencia = redondear(total - pagado - pendiente)

    problemas = []
    if abs(diferencia) > TOLERANCIA:
        problemas.append(f"pagado ({pagado}) + pendiente ({pendiente}) != total ({total})")
    if pendiente < 0:
        problemas.append(f"pendiente negativo ({pendiente})")
    if obligacion.estado != EstadoPago.CANCELADO.value:
        esperado = calcular_estado_pago(pendiente, total).value
        if obligacion.estado != esperado:
            problemas.append(f"estado '{obligacion.estado}' != derivado '{esperado}'")

    return {
        "tipo": tipo.value,
        "id": id_obligacion,
        "total": total,
        "pagado": pagado,
        "pendiente": pendiente,
        "diferencia": diferencia,
        "consistente": not problemas,
        "problemas": problemas,
    }
