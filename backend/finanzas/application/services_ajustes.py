"""
Servicio de Ajustes Financieros

Un ajuste se crea ACTIVO con su detalle (cada línea vinculada a UNA venta
o UN gasto) y solo puede pasar a ANULADO. Anular no revierte saldos de
ventas ni gastos.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from ..domain.enums import EstadoPago, EstadoRegistro, Naturaleza, TipoTransaccion
from ..domain.models_ajustes import DimAjusteFinanciero, AjusteFinanciero, AjusteDetalle
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import AjusteIn, AjusteOut, DetalleAjusteIn, DimensionIn, DimensionOut, BonificacionIn
from .errors import ValidacionError, NoEncontradoError, ReglaNegocioError
from .reglas_cuentas import ReglasCuentas
from .services_saldos import redondear, TOLERANCIA

logger = logging.getLogger(__name__)

CODIGO_BONIFICACION = "BONIFICACION"


def validar_ajuste(datos: AjusteIn, reglas: ReglasCuentas) -> List[str]:
    errores = []
    if not datos.id_tipo_ajuste:
        errores.append("id_tipo_ajuste es requerido")
    if datos.monto is None or redondear(datos.monto) <= 0:
        errores.append("monto debe ser mayor a 0")
    if not datos.moneda:
        errores.append("moneda es requerida")
    elif not reglas.es_moneda_valida(datos.moneda):
        errores.append(f"moneda debe ser {' o '.join(reglas.monedas)}")

    if not datos.detalle:
        errores.append("detalle debe contener al menos un elemento")
        return errores

    for i, det in enumerate(datos.detalle):
        if bool(det.id_gasto) == bool(det.id_venta):
            errores.append(f"detalle[{i}]: debe incluir id_gasto o id_venta (exactamente uno)")
        if det.monto_aplicado is None or redondear(det.monto_aplicado) <= 0:
            errores.append(f"detalle[{i}]: monto_aplicado debe ser mayor a 0")
        if det.porcentaje is not None and not (0 <= det.porcentaje <= 100):
            errores.append(f"detalle[{i}]: porcentaje debe estar entre 0 y 100")
        if det.base_calculo is not None and det.base_calculo <= 0:
            errores.append(f"detalle[{i}]: base_calculo debe ser mayor a 0")

    suma = redondear(sum((redondear(d.monto_aplicado) for d in datos.detalle if d.monto_aplicado is not None), Decimal("0")))
    if datos.monto is not None and abs(suma - redondear(datos.monto)) > TOLERANCIA:
        errores.append(f"La suma de montos aplicados ({suma}) debe ser igual al monto total ({redondear(datos.monto)})")
    return errores


def validar_dimension(datos: DimensionIn) -> List[str]:
    errores = []
    if not datos.codigo.strip():
        errores.append("codigo es requerido")
    if not datos.descripcion.strip():
        errores.append("descripcion es requerida")
    if not datos.naturaleza:
        errores.append("naturaleza es requerida")
    elif datos.naturaleza.upper() not in (Naturaleza.INGRESO.value, Naturaleza.EGRESO.value):
        errores.append("naturaleza debe ser INGRESO o EGRESO")
    return errores


class AjustesService:
    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas

    # ===== DIMENSIONES =====

    def listar_dimensiones_activas(self) -> List[DimensionOut]:
        return [DimensionOut.model_validate(d) for d in self.uow.ajustes.dimensiones(solo_activas=True)]

    def crear_dimension(self, datos: DimensionIn) -> DimensionOut:
        errores = validar_dimension(datos)
        if errores:
            raise ValidacionError(errores)
        with self.uow.transaction():
            codigo = datos.codigo.strip().upper()
            if self.uow.ajustes.dimension_by_codigo(codigo):
                raise ReglaNegocioError(f"Ya existe una dimensión con código {codigo}")
            dim = self.uow.ajustes.add_dimension(DimAjusteFinanciero(
                codigo=codigo,
                descripcion=datos.descripcion.strip(),
                naturaleza=datos.naturaleza.upper(),
                activo=True if datos.activo is None else datos.activo,
            ))
            salida = DimensionOut.model_validate(dim)
        logger.info(f"Dimensión de ajuste creada: {salida.codigo} ({salida.naturaleza})")
        return salida

    def actualizar_dimension(self, id_dimension: int, datos: DimensionIn) -> DimensionOut:
        errores = validar_dimension(datos)
        if errores:
            raise ValidacionError(errores)
        with self.uow.transaction():
            dim = self.uow.ajustes.get_dimension(id_dimension)
            if not dim:
                raise NoEncontradoError("Dimensión", id_dimension)
            dim.codigo = datos.codigo.strip().upper()
            dim.descripcion = datos.descripcion.strip()
            dim.naturaleza = datos.naturaleza.upper()
            if datos.activo is not None:
                dim.activo = datos.activo
            self.uow.flush()
            salida = DimensionOut.model_validate(dim)
        return salida

    # ===== AJUSTES =====

    def crear_ajuste(self, datos: AjusteIn) -> AjusteOut:
        """
        Raises:
            ValidacionError: payload inválido
            NoEncontradoError: tipo, cuenta, venta o gasto inexistente
            ReglaNegocioError: tipo o cuenta inactivos, moneda distinta a la cuenta, venta cancelada
        """
        errores = validar_ajuste(datos, self.reglas)
        if errores:
            raise ValidacionError(errores)
        with self.uow.transaction():
            ajuste = self._crear_en_transaccion(datos)
            salida = AjusteOut.model_validate(ajuste)
        logger.info(f"Ajuste financiero {salida.id} creado: {salida.monto} {salida.moneda}, {len(salida.detalle)} líneas")
        return salida

    def _crear_en_transaccion(self, datos: AjusteIn) -> AjusteFinanciero:
        moneda = datos.moneda.upper()
        tipo = self.uow.ajustes.get_dimension(datos.id_tipo_ajuste)
        if not tipo:
            raise NoEncontradoError("Tipo de ajuste", datos.id_tipo_ajuste)
        if not tipo.activo:
            raise ReglaNegocioError(f"El tipo de ajuste {tipo.codigo} no está activo")

        if datos.id_cuenta:
            cuenta = self.uow.cuentas.get(datos.id_cuenta)
            if not cuenta:
                raise NoEncontradoError("Cuenta", datos.id_cuenta)
            if not cuenta.activa:
                raise ReglaNegocioError(f"La cuenta {cuenta.nombre} no está activa")
            if cuenta.moneda != moneda:
                raise ReglaNegocioError(
                    f"La moneda del ajuste ({moneda}) no coincide con la de la cuenta {cuenta.nombre} ({cuenta.moneda})"
                )

        for det in datos.detalle:
            self._validar_obligacion_detalle(det)

        ajuste = self.uow.ajustes.add(AjusteFinanciero(
            fecha=datos.fecha or datetime.now(),
            id_tipo_ajuste=tipo.id,
            monto=redondear(datos.monto),
            moneda=moneda,
            id_cuenta=datos.id_cuenta,
            referencia=datos.referencia,
            nota=datos.nota,
            estado=EstadoRegistro.ACTIVO.value,
        ))
        for det in datos.detalle:
            self.uow.ajustes.add_detalle(AjusteDetalle(
                id_ajuste=ajuste.id,
                id_venta=det.id_venta,
                id_gasto=det.id_gasto,
                monto_aplicado=redondear(det.monto_aplicado),
                porcentaje=det.porcentaje,
                base_calculo=redondear(det.base_calculo) if det.base_calculo is not None else None,
                fecha_aplicacion=ajuste.fecha,
            ))
        self.uow.flush()
        self.uow.db.refresh(ajuste)
        return ajuste

    def _validar_obligacion_detalle(self, det: DetalleAjusteIn) -> None:
        if det.id_gasto:
            if not self.uow.gastos.get(det.id_gasto):
                raise NoEncontradoError("Gasto", det.id_gasto)
        else:
            venta = self.uow.ventas.get(det.id_venta)
            if not venta:
                raise NoEncontradoError("Venta", det.id_venta)
            if venta.estado == EstadoPago.CANCELADO.value:
                raise ReglaNegocioError(f"La venta {det.id_venta} está cancelada")

    def obtener_ajuste(self, id_ajuste: int) -> AjusteOut:
        ajuste = self.uow.ajustes.get(id_ajuste)
        if not ajuste:
            raise NoEncontradoError("Ajuste financiero", id_ajuste)
        return AjusteOut.model_validate(ajuste)

    def listar_ajustes(self, id_tipo_ajuste: Optional[int] = None, desde: Optional[datetime] = None,
                       hasta: Optional[datetime] = None, estado: Optional[str] = None,
                       moneda: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[AjusteOut]:
        filas = self.uow.ajustes.list(
            id_tipo_ajuste=id_tipo_ajuste, desde=desde, hasta=hasta, estado=estado, moneda=moneda,
            limit=limit, offset=offset,
        )
        return [AjusteOut.model_validate(a) for a in filas]

    def anular_ajuste(self, id_ajuste: int) -> AjusteOut:
        """ACTIVO -> ANULADO. No revierte saldos de ventas ni gastos."""
        with self.uow.transaction():
            ajuste = self.uow.ajustes.get_for_update(id_ajuste)
            if not ajuste:
                raise NoEncontradoError("Ajuste financiero", id_ajuste)
            if ajuste.estado == EstadoRegistro.ANULADO.value:
                raise ReglaNegocioError(f"El ajuste {id_ajuste} ya está anulado")
            ajuste.estado = EstadoRegistro.ANULADO.value
            self.uow.flush()
            salida = AjusteOut.model_validate(ajuste)
        logger.info(f"Ajuste financiero {id_ajuste} anulado")
        return salida

    # ===== BONIFICACIONES =====

    def registrar_bonificacion(self, id_transaccion: int, datos: BonificacionIn) -> AjusteOut:
        """
        Bonificación sobre un pago de gasto: ajuste de tipo BONIFICACION con
        porcentaje = monto / aplicado * 100 y base = aplicado.
        """
        monto = redondear(datos.monto_bonificacion)
        if monto <= 0:
            raise ValidacionError(["El monto de bonificación debe ser mayor a 0"])

        with self.uow.transaction():
            transaccion = self.uow.transacciones.get(id_transaccion)
            if not transaccion or transaccion.tipo != TipoTransaccion.EGRESO.value:
                raise NoEncontradoError("Pago de gasto", id_transaccion)
            aplicaciones = [a for a in self.uow.aplicaciones.por_transaccion(id_transaccion) if a.id_gasto]
            if datos.id_gasto is not None:
                aplicaciones = [a for a in aplicaciones if a.id_gasto == datos.id_gasto]
            if not aplicaciones:
                raise NoEncontradoError("Aplicación del pago", id_transaccion)
            if len(aplicaciones) > 1:
                raise ValidacionError(["El pago se aplicó a varios gastos: indique id_gasto"])
            aplicacion = aplicaciones[0]
            aplicado = redondear(aplicacion.monto_aplicado)
            if monto > aplicado:
                raise ReglaNegocioError(f"La bonificación ({monto}) no puede exceder el monto del pago ({aplicado})")

            dimension = self.uow.ajustes.dimension_by_codigo(CODIGO_BONIFICACION)
            if not dimension:
                raise NoEncontradoError("Tipo de ajuste", CODIGO_BONIFICACION)

            ajuste = self._crear_en_transaccion(AjusteIn(
                id_tipo_ajuste=dimension.id,
                monto=monto,
                moneda=transaccion.moneda,
                id_cuenta=datos.id_cuenta,
                referencia=f"PAGO {transaccion.id}",
                nota=datos.nota,
                detalle=[DetalleAjusteIn(
                    id_gasto=aplicacion.id_gasto,
                    monto_aplicado=monto,
                    porcentaje=redondear(monto / aplicado * 100),
                    base_calculo=aplicado,
                )],
            ))
            salida = AjusteOut.model_validate(ajuste)
        logger.info(f"Bonificación {salida.id} registrada sobre pago {id_transaccion}: {monto} {salida.moneda}")
        return salida
