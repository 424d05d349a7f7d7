"""
Servicio de Gastos y Obligaciones

Alta en lote: cada gasto se clasifica según la suma de sus pagos iniciales:
- FULL:    suma == total  (fecha de vencimiento se ignora, queda NULL)
- PARTIAL: 0 < suma < total (fecha de vencimiento requerida)
- NONE:    suma == 0 (fecha de vencimiento requerida)
Todo el lote se crea en una sola transacción: si un gasto falla, no se
persiste ninguno.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from ..domain.enums import EscenarioPago, EstadoPago, EstrategiaAplicacion, TipoObligacion
from ..domain.models_obligaciones import Gasto
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import GastoIn, LineaPagoIn, ObligacionCreadaOut, ResultadoPago, GastoOut, HistorialPagoOut, ObligacionPendienteOut
from .errors import ValidacionError, NoEncontradoError
from .reglas_cuentas import ReglasCuentas
from .services_pagos import PagosService, validar_lineas_pago
from .services_saldos import redondear, obligaciones_pendientes

logger = logging.getLogger(__name__)


def suma_lineas(lineas: List[LineaPagoIn]) -> Decimal:
    return redondear(sum((redondear(linea.monto) for linea in lineas if linea.monto is not None), Decimal("0")))


def clasificar_escenario(total, lineas: List[LineaPagoIn]) -> EscenarioPago:
    suma = suma_lineas(lineas)
    if suma == 0:
        return EscenarioPago.NONE
    if suma == redondear(total):
        return EscenarioPago.FULL
    return EscenarioPago.PARTIAL


def validar_gasto(gasto: GastoIn, reglas: ReglasCuentas, prefijo: str = "") -> List[str]:
    errores = []
    if gasto.fecha is None:
        errores.append(f"{prefijo}fecha es requerida")
    if gasto.monto_total is None:
        errores.append(f"{prefijo}monto_total es requerido")
    elif redondear(gasto.monto_total) <= 0:
        errores.append(f"{prefijo}monto_total debe ser mayor a 0")
    if not gasto.moneda:
        errores.append(f"{prefijo}moneda es requerida")
    elif not reglas.es_moneda_valida(gasto.moneda):
        errores.append(f"{prefijo}moneda debe ser {' o '.join(reglas.monedas)}")
    if not gasto.id_categoria:
        errores.append(f"{prefijo}id_categoria es requerida")

    if gasto.lineas:
        errores.extend(prefijo + e for e in validar_lineas_pago(gasto.lineas, reglas, TipoObligacion.GASTO))

    if gasto.monto_total is not None and redondear(gasto.monto_total) > 0:
        suma = suma_lineas(gasto.lineas)
        if suma > redondear(gasto.monto_total):
            errores.append(f"{prefijo}la suma de pagos ({suma}) excede el monto total ({redondear(gasto.monto_total)})")
        elif clasificar_escenario(gasto.monto_total, gasto.lineas) != EscenarioPago.FULL and not gasto.fecha_vencimiento:
            errores.append(f"{prefijo}fecha_vencimiento es requerida cuando el pago es parcial o no hay pago")
    return errores


class GastosService:
    clasificar_escenario = staticmethod(clasificar_escenario)

    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas
        self.pagos = PagosService(uow, reglas)

    def crear_gastos_batch(self, gastos: List[GastoIn]) -> List[ObligacionCreadaOut]:
        """
        Crea N gastos con sus pagos iniciales, todo o nada.

        Raises:
            ValidacionError: payload inválido (antes de abrir la transacción)
            NoEncontradoError: categoría inexistente
            CuentaNoEncontradaError: un pago inicial sin cuenta activa
        """
        if not gastos:
            raise ValidacionError(["gastos[] debe ser una lista no vacía"])
        errores = []
        for i, gasto in enumerate(gastos):
            errores.extend(validar_gasto(gasto, self.reglas, prefijo=f"gastos[{i}]."))
        if errores:
            raise ValidacionError(errores)

        with self.uow.transaction():
            creados = [self._crear_en_transaccion(g) for g in gastos]

        logger.info(
            f"Lote de gastos creado: {len(creados)} gastos "
            f"({', '.join(f'#{c.id}:{c.escenario}' for c in creados)})"
        )
        return creados

    def _crear_en_transaccion(self, datos: GastoIn) -> ObligacionCreadaOut:
        if not self.uow.categorias.get(datos.id_categoria):
            raise NoEncontradoError("Categoría", datos.id_categoria)
        if datos.id_subcategoria and not self.uow.categorias.get(datos.id_subcategoria):
            raise NoEncontradoError("Subcategoría", datos.id_subcategoria)

        total = redondear(datos.monto_total)
        escenario = clasificar_escenario(total, datos.lineas)
        gasto = self.uow.gastos.add(Gasto(
            fecha=datos.fecha,
            id_categoria=datos.id_categoria,
            id_subcategoria=datos.id_subcategoria,
            proveedor=datos.proveedor,
            num_comprobante=datos.num_comprobante,
            monto_total=total,
            moneda=datos.moneda.upper(),
            fecha_vencimiento=None if escenario == EscenarioPago.FULL else datos.fecha_vencimiento,
            saldo_pendiente=total,
            estado=EstadoPago.PENDIENTE.value,
            nota=datos.nota,
        ))
        self.uow.flush()

        resultado: Optional[ResultadoPago] = None
        if escenario != EscenarioPago.NONE:
            resultado = self.pagos.aplicar_en_transaccion(
                TipoObligacion.GASTO, datos.lineas, EstrategiaAplicacion.DIRECT,
                id_obligacion=gasto.id, fecha=datos.fecha,
            )

        return ObligacionCreadaOut(
            tipo=TipoObligacion.GASTO,
            id=gasto.id,
            moneda=gasto.moneda,
            total=total,
            saldo_pendiente=redondear(gasto.saldo_pendiente),
            estado=gasto.estado,
            escenario=escenario.value,
            fecha_vencimiento=gasto.fecha_vencimiento,
            transacciones=resultado.transacciones if resultado else [],
            aplicaciones=resultado.aplicaciones if resultado else [],
        )

    def pagar_obligacion(self, id_gasto: int, lineas: List[LineaPagoIn], fecha: Optional[datetime] = None) -> ResultadoPago:
        """Pago DIRECT de un gasto pendiente"""
        return self.pagos.registrar_pago(
            TipoObligacion.GASTO, lineas, EstrategiaAplicacion.DIRECT, id_obligacion=id_gasto, fecha=fecha
        )

    def obligaciones_pendientes(self, moneda: Optional[str] = None) -> List[ObligacionPendienteOut]:
        return obligaciones_pendientes(self.uow, TipoObligacion.GASTO, moneda=moneda)

    def historial_pagos(self, id_gasto: int) -> List[HistorialPagoOut]:
        return self.pagos.historial_pagos_gasto(id_gasto)

    def listar_gastos(self, desde: Optional[datetime] = None, hasta: Optional[datetime] = None,
                      id_categoria: Optional[int] = None, limit: int = 100, offset: int = 0) -> List[GastoOut]:
        filas = self.uow.gastos.list(desde=desde, hasta=hasta, id_categoria=id_categoria, limit=limit, offset=offset)
        return [GastoOut.model_validate(g) for g in filas]
