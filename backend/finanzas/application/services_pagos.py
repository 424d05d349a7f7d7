"""
Servicio de Pagos (cobros de ventas y pagos de gastos)

Flujo de registrar_pago, en UNA transacción de base de datos:
1. Bloquear y leer las obligaciones destino
2. Asignar el pago (DIRECT o FIFO)
3. Resolver la cuenta de cada línea e insertar las transacciones
4. Actualizar saldo y estado de cada obligación tocada
5. Insertar las aplicaciones (transacción, obligación, monto)
Cualquier error deshace todo.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from ..domain.enums import EstadoPago, EstadoRegistro, EstrategiaAplicacion, ModoCobro, TipoObligacion, TipoTransaccion
from ..domain.models_pagos import TransaccionPago, AplicacionPago
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import (
    LineaPagoIn, ResultadoPago, TransaccionOut, AplicacionOut, ObligacionActualizadaOut, HistorialPagoOut,
)
from .errors import ValidacionError, ReglaNegocioError
from .reglas_cuentas import ReglasCuentas, ResolvedorCuentas
from .services_asignacion import ObligacionPendiente, asignar_directo, asignar_fifo, repartir_por_transaccion
from .services_saldos import redondear, obtener_obligacion, total_obligacion

logger = logging.getLogger(__name__)


def validar_lineas_pago(lineas: List[LineaPagoIn], reglas: ReglasCuentas, tipo: TipoObligacion) -> List[str]:
    """Validación estructural de líneas de pago. Devuelve todos los errores encontrados."""
    errores = []
    if not lineas:
        return ["Debe indicar al menos una línea de pago"]
    para_gasto = tipo == TipoObligacion.GASTO
    for i, linea in enumerate(lineas, start=1):
        if linea.monto is None or redondear(linea.monto) <= 0:
            errores.append(f"Línea {i}: el monto debe ser mayor a 0")
        if not reglas.es_metodo_valido(linea.metodo_pago, para_gasto=para_gasto):
            validos = reglas.metodos_gasto if para_gasto else reglas.metodos_venta
            errores.append(f"Línea {i}: método de pago '{linea.metodo_pago}' inválido (válidos: {', '.join(validos)})")
        if linea.moneda is not None and not reglas.es_moneda_valida(linea.moneda):
            errores.append(f"Línea {i}: moneda '{linea.moneda}' inválida")
    return errores


class PagosService:
    """
    Registra cobros y pagos aplicándolos a ventas o gastos.

    `registrar_pago` abre y cierra su propia transacción.
    `aplicar_en_transaccion` hace lo mismo dentro de una transacción ya
    abierta por el llamador (ej: alta de gastos en lote).
    """

    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas
        self.resolvedor = ResolvedorCuentas(uow, reglas)

    def validar(self, tipo: TipoObligacion, lineas: List[LineaPagoIn], estrategia: EstrategiaAplicacion,
                id_cliente: Optional[int] = None, id_obligacion: Optional[int] = None) -> None:
        errores = validar_lineas_pago(lineas, self.reglas, tipo)
        if estrategia == EstrategiaAplicacion.DIRECT and id_obligacion is None:
            errores.append("La estrategia DIRECT requiere id_obligacion")
        if estrategia == EstrategiaAplicacion.FIFO:
            if tipo == TipoObligacion.VENTA and id_cliente is None:
                errores.append("La estrategia FIFO requiere id_cliente")
            monedas = {linea.moneda.upper() for linea in lineas if linea.moneda}
            if len(monedas) > 1:
                errores.append("Todas las líneas de un pago FIFO deben estar en la misma moneda")
        if errores:
            raise ValidacionError(errores)

    def registrar_pago(
        self,
        tipo: TipoObligacion,
        lineas: List[LineaPagoIn],
        estrategia: EstrategiaAplicacion,
        id_cliente: Optional[int] = None,
        id_obligacion: Optional[int] = None,
        modo: ModoCobro = ModoCobro.FULL,
        fecha: Optional[datetime] = None,
    ) -> ResultadoPago:
        """
        Registra un pago y lo aplica a una o varias obligaciones.

        Raises:
            ValidacionError: líneas mal formadas (antes de abrir la transacción)
            NoEncontradoError: la obligación DIRECT no existe
            ReglaNegocioError: pago mayor al saldo, venta cancelada, pagador sin deuda
            CuentaNoEncontradaError: no hay cuenta activa para método + moneda
        """
        self.validar(tipo, lineas, estrategia, id_cliente, id_obligacion)
        with self.uow.transaction():
            resultado = self.aplicar_en_transaccion(
                tipo, lineas, estrategia, id_cliente=id_cliente, id_obligacion=id_obligacion, modo=modo, fecha=fecha
            )
        logger.info(
            f"Pago {estrategia.value} registrado ({tipo.value}): total={resultado.total_pagado}, "
            f"aplicado={resultado.total_aplicado}, transacciones={[t.id for t in resultado.transacciones]}"
        )
        return resultado

    def aplicar_en_transaccion(
        self,
        tipo: TipoObligacion,
        lineas: List[LineaPagoIn],
        estrategia: EstrategiaAplicacion,
        id_cliente: Optional[int] = None,
        id_obligacion: Optional[int] = None,
        modo: ModoCobro = ModoCobro.FULL,
        fecha: Optional[datetime] = None,
    ) -> ResultadoPago:
        fecha = fecha or datetime.now()
        total_pago = redondear(sum((redondear(linea.monto) for linea in lineas), Decimal("0")))

        # 1-2. Obligaciones bloqueadas + asignación
        if estrategia == EstrategiaAplicacion.DIRECT:
            obligacion = obtener_obligacion(self.uow, tipo, id_obligacion, lock=True)
            self._validar_obligacion_direct(tipo, obligacion, lineas, id_cliente)
            moneda = obligacion.moneda
            if tipo == TipoObligacion.VENTA:
                id_cliente = obligacion.id_cliente
            obligaciones = {obligacion.id: obligacion}
            asignacion = asignar_directo(total_pago, self._a_pendiente(obligacion))
        else:
            moneda = next((linea.moneda.upper() for linea in lineas if linea.moneda), self.reglas.moneda_local)
            if tipo == TipoObligacion.VENTA:
                filas = self.uow.ventas.pendientes(id_cliente=id_cliente, moneda=moneda, lock=True)
            else:
                filas = self.uow.gastos.pendientes(moneda=moneda, lock=True)
            deuda = redondear(sum((redondear(o.saldo_pendiente) for o in filas), Decimal("0")))
            if deuda <= 0:
                raise ReglaNegocioError(f"No hay obligaciones pendientes en {moneda} para aplicar el pago")
            if modo == ModoCobro.PARTIAL and total_pago > deuda:
                raise ReglaNegocioError(
                    f"El monto a cobrar ({total_pago}) no puede ser mayor a la deuda total ({deuda})"
                )
            obligaciones = {o.id: o for o in filas}
            asignacion = asignar_fifo(total_pago, [self._a_pendiente(o) for o in filas])
            if asignacion.remanente > 0:
                logger.warning(
                    f"Pago FIFO excede la deuda: remanente no aplicado {asignacion.remanente} {moneda} "
                    f"(cliente={id_cliente})"
                )

        # 3. Transacciones, una por línea, en el orden recibido
        transacciones = []
        for linea in lineas:
            moneda_linea = (linea.moneda or moneda).upper()
            cuenta = self.resolvedor.resolver(linea.metodo_pago, moneda_linea)
            transacciones.append(self.uow.transacciones.add(TransaccionPago(
                tipo=(TipoTransaccion.INGRESO if tipo == TipoObligacion.VENTA else TipoTransaccion.EGRESO).value,
                fecha=fecha,
                id_cliente=id_cliente if tipo == TipoObligacion.VENTA else None,
                monto=redondear(linea.monto),
                moneda=moneda_linea,
                metodo_pago=linea.metodo_pago.upper(),
                referencia=linea.referencia,
                nota=linea.nota,
                id_cuenta=cuenta.id,
                estado=EstadoRegistro.ACTIVO.value,
            )))

        # 4. Un solo update de saldo por obligación tocada
        actualizadas = []
        for a in asignacion.asignaciones:
            obligacion = obligaciones[a.id_obligacion]
            obligacion.saldo_pendiente = a.saldo_nuevo
            obligacion.estado = a.estado_nuevo.value
            actualizadas.append(ObligacionActualizadaOut(
                tipo=tipo,
                id=a.id_obligacion,
                saldo_anterior=a.saldo_anterior,
                monto_aplicado=a.monto_aplicado,
                saldo_nuevo=a.saldo_nuevo,
                estado_nuevo=a.estado_nuevo.value,
            ))

        # 5. Aplicaciones: cada asignación se cubre con las transacciones en orden de línea
        aplicaciones = []
        for tramo in repartir_por_transaccion([t.monto for t in transacciones], asignacion.asignaciones):
            aplicaciones.append(self.uow.aplicaciones.add(AplicacionPago(
                id_transaccion=transacciones[tramo.indice_transaccion].id,
                id_venta=tramo.id_obligacion if tipo == TipoObligacion.VENTA else None,
                id_gasto=tramo.id_obligacion if tipo == TipoObligacion.GASTO else None,
                monto_aplicado=tramo.monto,
                fecha_aplicacion=fecha,
            )))
            logger.debug(
                f"Aplicación: transacción {transacciones[tramo.indice_transaccion].id} -> "
                f"{tipo.value} {tramo.id_obligacion}: {tramo.monto}"
            )

        return ResultadoPago(
            transacciones=[TransaccionOut.model_validate(t) for t in transacciones],
            aplicaciones=[AplicacionOut.model_validate(a) for a in aplicaciones],
            obligaciones_actualizadas=actualizadas,
            total_pagado=total_pago,
            total_aplicado=asignacion.total_aplicado,
            remanente_no_aplicado=asignacion.remanente,
        )

    def _validar_obligacion_direct(self, tipo: TipoObligacion, obligacion, lineas: List[LineaPagoIn],
                                   id_cliente: Optional[int]) -> None:
        if tipo == TipoObligacion.VENTA:
            if obligacion.estado == EstadoPago.CANCELADO.value:
                raise ReglaNegocioError(f"La venta {obligacion.id} está cancelada")
            if id_cliente is not None and obligacion.id_cliente != id_cliente:
                raise ReglaNegocioError(f"La venta {obligacion.id} no pertenece al cliente {id_cliente}")
        for linea in lineas:
            if linea.moneda and linea.moneda.upper() != obligacion.moneda:
                raise ReglaNegocioError(
                    f"La moneda del pago ({linea.moneda.upper()}) no coincide con la de la obligación ({obligacion.moneda})"
                )

    @staticmethod
    def _a_pendiente(obligacion) -> ObligacionPendiente:
        return ObligacionPendiente(
            id=obligacion.id,
            total=total_obligacion(obligacion),
            saldo_pendiente=redondear(obligacion.saldo_pendiente),
        )

    # ===== HISTORIAL =====

    def historial_pagos_cliente(self, id_cliente: int, limit: int = 100) -> List[HistorialPagoOut]:
        return [self._a_historial(a, t) for a, t in self.uow.aplicaciones.historial_cliente(id_cliente, limit)]

    def historial_pagos_gasto(self, id_gasto: int) -> List[HistorialPagoOut]:
        obtener_obligacion(self.uow, TipoObligacion.GASTO, id_gasto)
        return [self._a_historial(a, t) for a, t in self.uow.aplicaciones.historial_gasto(id_gasto)]

    @staticmethod
    def _a_historial(aplicacion: AplicacionPago, transaccion: TransaccionPago) -> HistorialPagoOut:
        return HistorialPagoOut(
            id_transaccion=transaccion.id,
            id_aplicacion=aplicacion.id,
            fecha=transaccion.fecha,
            metodo_pago=transaccion.metodo_pago,
            cuenta=transaccion.cuenta.nombre,
            monto_transaccion=redondear(transaccion.monto),
            monto_aplicado=redondear(aplicacion.monto_aplicado),
            id_venta=aplicacion.id_venta,
            id_gasto=aplicacion.id_gasto,
            referencia=transaccion.referencia,
            nota=transaccion.nota,
        )
