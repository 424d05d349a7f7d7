"""
Servicio de Cambios de Moneda y Transferencias entre cuentas

Factor de conversión = unidades de moneda local (UYU) por unidad de moneda
extranjera (USD). Solo se soporta el par local/extranjera; entre cuentas
de la misma moneda es una transferencia y el factor se guarda como 1.
"""
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from ..domain.enums import EstadoRegistro, MonedaInput
from ..domain.models_cambios import CambioMoneda
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import CambioIn, ResultadoCambio, CambioOut, CuentaSaldoOut
from .errors import ValidacionError, NoEncontradoError, ReglaNegocioError, SaldoInsuficienteError, ConversionNoSoportadaError
from .reglas_cuentas import ReglasCuentas
from .services_saldos import redondear

logger = logging.getLogger(__name__)


def calcular_montos(moneda_origen: str, moneda_destino: str, monto_input, moneda_input: MonedaInput,
                    factor_conversion, reglas: ReglasCuentas) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Devuelve (monto_origen, monto_destino, factor). Cada monto se redondea
    por separado.

    Ej: 1000 UYU -> USD con factor 40 ingresado en ORIGEN  -> (1000.00, 25.00)
        25 USD <- UYU con factor 40 ingresado en DESTINO -> (1000.00, 25.00)

    Si algún lado redondea a 0.00 (ej: 0.10 UYU -> USD con factor 40) lanza
    ValidacionError antes de escribir nada.
    """
    monto = Decimal(str(monto_input))
    if moneda_origen == moneda_destino:
        factor = Decimal("1")
        monto_origen = monto_destino = monto
    elif not reglas.es_par_soportado(moneda_origen, moneda_destino):
        raise ConversionNoSoportadaError(moneda_origen, moneda_destino)
    else:
        factor = Decimal(str(factor_conversion))
        local_a_extranjera = moneda_origen == reglas.moneda_local
        if moneda_input == MonedaInput.ORIGEN:
            monto_origen = monto
            monto_destino = monto / factor if local_a_extranjera else monto * factor
        else:
            monto_destino = monto
            monto_origen = monto * factor if local_a_extranjera else monto / factor

    monto_origen, monto_destino = redondear(monto_origen), redondear(monto_destino)
    if monto_origen <= 0 or monto_destino <= 0:
        raise ValidacionError([
            f"El monto convertido redondea a 0 ({monto_origen} {moneda_origen} -> {monto_destino} {moneda_destino})"
        ])
    return monto_origen, monto_destino, factor


class CambiosService:
    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas

    @staticmethod
    def validar(datos: CambioIn) -> MonedaInput:
        errores = []
        if not datos.id_cuenta_origen or not datos.id_cuenta_destino:
            errores.append("Cuenta origen y destino son requeridas")
        elif datos.id_cuenta_origen == datos.id_cuenta_destino:
            errores.append("Cuenta origen y destino deben ser diferentes")
        if datos.monto_input is None or datos.monto_input <= 0:
            errores.append("El monto debe ser mayor a 0")
        if datos.factor_conversion is None or datos.factor_conversion <= 0:
            errores.append("El factor de conversión debe ser mayor a 0")
        moneda_input = None
        try:
            moneda_input = MonedaInput((datos.moneda_input or "").upper())
        except ValueError:
            errores.append("moneda_input debe ser ORIGEN o DESTINO")
        if errores:
            raise ValidacionError(errores)
        return moneda_input

    def registrar_cambio(self, datos: CambioIn) -> ResultadoCambio:
        """
        Registra un cambio de moneda o transferencia.

        Raises:
            ValidacionError: datos de entrada inválidos
            NoEncontradoError: cuenta origen/destino inexistente
            ConversionNoSoportadaError: par de monedas fuera de UYU/USD
            SaldoInsuficienteError: el monto origen supera el saldo de la cuenta origen
        """
        moneda_input = self.validar(datos)
        with self.uow.transaction():
            origen = self.uow.cuentas.get_for_update(datos.id_cuenta_origen)
            if not origen:
                raise NoEncontradoError("Cuenta origen", datos.id_cuenta_origen)
            destino = self.uow.cuentas.get(datos.id_cuenta_destino)
            if not destino:
                raise NoEncontradoError("Cuenta destino", datos.id_cuenta_destino)
            for cuenta in (origen, destino):
                if not cuenta.activa:
                    raise ReglaNegocioError(f"La cuenta {cuenta.nombre} está inactiva")

            monto_origen, monto_destino, factor = calcular_montos(
                origen.moneda, destino.moneda, datos.monto_input, moneda_input, datos.factor_conversion, self.reglas
            )
            saldo_origen = self.uow.cuentas.saldo(origen.id)
            if monto_origen > saldo_origen:
                raise SaldoInsuficienteError(origen.nombre, saldo_origen, monto_origen, origen.moneda)

            cambio = self.uow.cambios.add(CambioMoneda(
                id_cuenta_origen=origen.id,
                id_cuenta_destino=destino.id,
                monto_origen=monto_origen,
                moneda_origen=origen.moneda,
                monto_destino=monto_destino,
                moneda_destino=destino.moneda,
                factor_conversion=factor,
                nota=datos.nota,
                estado=EstadoRegistro.ACTIVO.value,
            ))
            resultado = ResultadoCambio(
                id_cambio=cambio.id,
                fecha_cambio=cambio.fecha_cambio,
                cuenta_origen=origen.nombre,
                cuenta_destino=destino.nombre,
                monto_origen=monto_origen,
                moneda_origen=origen.moneda,
                monto_destino=monto_destino,
                moneda_destino=destino.moneda,
                factor_conversion=factor,
                saldo_anterior_origen=saldo_origen,
                saldo_nuevo_origen=redondear(saldo_origen - monto_origen),
            )

        logger.info(
            f"Cambio {resultado.id_cambio}: {resultado.monto_origen} {resultado.moneda_origen} ({resultado.cuenta_origen}) "
            f"-> {resultado.monto_destino} {resultado.moneda_destino} ({resultado.cuenta_destino}), factor={factor}"
        )
        return resultado

    def saldo_cuenta(self, id_cuenta: int) -> CuentaSaldoOut:
        cuenta = self.uow.cuentas.get(id_cuenta)
        if not cuenta:
            raise NoEncontradoError("Cuenta", id_cuenta)
        return self._a_saldo(cuenta)

    def cuentas_con_saldo(self) -> List[CuentaSaldoOut]:
        return [self._a_saldo(c) for c in self.uow.cuentas.list(solo_activas=True)]

    def historial(self, id_cuenta: Optional[int] = None, limit: int = 50, offset: int = 0) -> List[CambioOut]:
        return [CambioOut.model_validate(c) for c in self.uow.cambios.list(id_cuenta=id_cuenta, limit=limit, offset=offset)]

    def _a_saldo(self, cuenta) -> CuentaSaldoOut:
        return CuentaSaldoOut(
            id=cuenta.id,
            nombre=cuenta.nombre,
            tipo=cuenta.tipo,
            moneda=cuenta.moneda,
            activa=cuenta.activa,
            saldo=self.uow.cuentas.saldo(cuenta.id),
        )
