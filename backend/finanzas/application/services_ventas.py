"""
Servicio de Ventas

Una venta se crea como un lote de una obligación: insert + pagos iniciales
(DIRECT) en la misma transacción.
"""
from datetime import datetime
from typing import List, Optional
import logging

from ..domain.enums import EstadoPago, EstrategiaAplicacion, TipoObligacion
from ..domain.models_obligaciones import Venta
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import VentaIn, ObligacionCreadaOut, VentaOut, VentaDetalleOut, AplicacionOut, EstadoObligacionOut
from .errors import ValidacionError, NoEncontradoError, ReglaNegocioError
from .reglas_cuentas import ReglasCuentas
from .services_gastos import clasificar_escenario, suma_lineas
from .services_pagos import PagosService, validar_lineas_pago
from .services_saldos import redondear, estado_obligacion, calcular_estado_pago

logger = logging.getLogger(__name__)


class VentasService:
    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas
        self.pagos = PagosService(uow, reglas)

    def validar(self, datos: VentaIn) -> None:
        errores = []
        if datos.total is None or redondear(datos.total) <= 0:
            errores.append("total debe ser mayor a 0")
        if datos.moneda and not self.reglas.es_moneda_valida(datos.moneda):
            errores.append(f"moneda debe ser {' o '.join(self.reglas.monedas)}")
        if datos.lineas:
            errores.extend(validar_lineas_pago(datos.lineas, self.reglas, TipoObligacion.VENTA))
            if datos.total is not None and suma_lineas(datos.lineas) > redondear(datos.total):
                errores.append("el monto abonado no puede ser mayor que el total")
        if errores:
            raise ValidacionError(errores)

    def crear_venta(self, datos: VentaIn) -> ObligacionCreadaOut:
        self.validar(datos)
        with self.uow.transaction():
            if not self.uow.clientes.get(datos.id_cliente):
                raise NoEncontradoError("Cliente", datos.id_cliente)

            total = redondear(datos.total)
            fecha = datos.fecha or datetime.now()
            escenario = clasificar_escenario(total, datos.lineas)
            venta = self.uow.ventas.add(Venta(
                fecha_venta=fecha,
                id_cliente=datos.id_cliente,
                canal=datos.canal.value,
                total=total,
                moneda=(datos.moneda or self.reglas.moneda_local).upper(),
                fecha_vencimiento=datos.fecha_vencimiento,
                saldo_pendiente=total,
                estado=EstadoPago.PENDIENTE.value,
                nota=datos.nota,
            ))
            self.uow.flush()

            resultado = None
            if datos.lineas:
                resultado = self.pagos.aplicar_en_transaccion(
                    TipoObligacion.VENTA, datos.lineas, EstrategiaAplicacion.DIRECT,
                    id_obligacion=venta.id, fecha=fecha,
                )

            creada = ObligacionCreadaOut(
                tipo=TipoObligacion.VENTA,
                id=venta.id,
                moneda=venta.moneda,
                total=total,
                saldo_pendiente=redondear(venta.saldo_pendiente),
                estado=venta.estado,
                escenario=escenario.value,
                fecha_vencimiento=venta.fecha_vencimiento,
                transacciones=resultado.transacciones if resultado else [],
                aplicaciones=resultado.aplicaciones if resultado else [],
            )

        logger.info(f"Venta {creada.id} creada: total={creada.total} {creada.moneda}, estado={creada.estado}")
        return creada

    def obtener_venta(self, id_venta: int) -> VentaDetalleOut:
        venta = self.uow.ventas.get(id_venta)
        if not venta:
            raise NoEncontradoError("Venta", id_venta)
        base = VentaOut.model_validate(venta).model_dump()
        return VentaDetalleOut(
            **base,
            cliente_nombre=venta.cliente.nombre_completo,
            aplicaciones=[AplicacionOut.model_validate(a) for a in self.uow.aplicaciones.por_venta(id_venta)],
        )

    def estado_venta(self, id_venta: int) -> EstadoObligacionOut:
        return estado_obligacion(self.uow, TipoObligacion.VENTA, id_venta)

    def listar_ventas(self, desde: Optional[datetime] = None, hasta: Optional[datetime] = None,
                      canal: Optional[str] = None, id_cliente: Optional[int] = None,
                      limit: int = 100, offset: int = 0) -> List[VentaOut]:
        filas = self.uow.ventas.list(desde=desde, hasta=hasta, canal=canal, id_cliente=id_cliente, limit=limit, offset=offset)
        return [VentaOut.model_validate(v) for v in filas]

    def cancelar_venta(self, id_venta: int) -> VentaOut:
        """Marca la venta como CANCELADO. Solo si no tiene pagos aplicados."""
        with self.uow.transaction():
            venta = self.uow.ventas.get_for_update(id_venta)
            if not venta:
                raise NoEncontradoError("Venta", id_venta)
            if venta.estado == EstadoPago.CANCELADO.value:
                raise ReglaNegocioError(f"La venta {id_venta} ya está cancelada")
            if calcular_estado_pago(venta.saldo_pendiente, venta.total) != EstadoPago.PENDIENTE:
                raise ReglaNegocioError(f"La venta {id_venta} tiene pagos aplicados y no puede cancelarse")
            venta.estado = EstadoPago.CANCELADO.value
            self.uow.flush()
            salida = VentaOut.model_validate(venta)
        logger.info(f"Venta {id_venta} cancelada")
        return salida
