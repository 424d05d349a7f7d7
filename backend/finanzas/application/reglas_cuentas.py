"""
Reglas de cuentas y monedas + resolvedor de cuentas de dinero.

Las reglas se inyectan (ReglasCuentas) en lugar de leerse como constantes
globales: los servicios las reciben en su constructor.
"""
import logging
from pydantic import BaseModel, ConfigDict
from typing import Tuple

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.models import CuentaDinero
from .errors import CuentaNoEncontradaError

logger = logging.getLogger(__name__)


class ReglasCuentas(BaseModel):
    model_config = ConfigDict(frozen=True)

    moneda_local: str = "UYU"
    moneda_extranjera: str = "USD"
    metodo_efectivo: str = "EFECTIVO"
    prefijo_caja: str = "CASH"
    prefijo_banco: str = "BANK"
    metodos_venta: Tuple[str, ...] = ("DEBITO", "CREDITO", "TRANSFERENCIA", "EFECTIVO", "OTROS")
    metodos_gasto: Tuple[str, ...] = ("EFECTIVO", "TRANSFERENCIA", "DEBITO", "OTROS")

    @classmethod
    def desde_settings(cls, settings) -> "ReglasCuentas":
        return cls(
            moneda_local=settings.moneda_local,
            moneda_extranjera=settings.moneda_extranjera,
            metodo_efectivo=settings.metodo_efectivo,
            prefijo_caja=settings.prefijo_caja,
            prefijo_banco=settings.prefijo_banco,
            metodos_venta=tuple(settings.metodos_pago_venta_list),
            metodos_gasto=tuple(settings.metodos_pago_gasto_list),
        )

    @property
    def monedas(self) -> Tuple[str, str]:
        return (self.moneda_local, self.moneda_extranjera)

    def nombre_cuenta(self, metodo_pago: str, moneda: str) -> str:
        """EFECTIVO -> "CASH <MONEDA>", cualquier otro método -> "BANK <MONEDA>" """
        prefijo = self.prefijo_caja if metodo_pago.upper() == self.metodo_efectivo else self.prefijo_banco
        return f"{prefijo} {moneda.upper()}"

    def es_metodo_valido(self, metodo_pago: str, para_gasto: bool = False) -> bool:
        metodos = self.metodos_gasto if para_gasto else self.metodos_venta
        return (metodo_pago or "").upper() in metodos

    def es_moneda_valida(self, moneda: str) -> bool:
        return (moneda or "").upper() in self.monedas

    def es_par_soportado(self, moneda_origen: str, moneda_destino: str) -> bool:
        return {moneda_origen, moneda_destino} == set(self.monedas)


class ResolvedorCuentas:
    """Resuelve (método de pago, moneda) a una cuenta de dinero activa. Solo lectura."""

    def __init__(self, uow: UnitOfWork, reglas: ReglasCuentas):
        self.uow = uow
        self.reglas = reglas

    def resolver(self, metodo_pago: str, moneda: str) -> CuentaDinero:
        nombre = self.reglas.nombre_cuenta(metodo_pago, moneda)
        cuenta = self.uow.cuentas.by_nombre(nombre)
        if not cuenta or not cuenta.activa:
            logger.warning(f"Cuenta no encontrada para {metodo_pago}/{moneda}: '{nombre}'")
            raise CuentaNoEncontradaError(nombre, metodo_pago=metodo_pago, moneda=moneda)
        return cuenta
