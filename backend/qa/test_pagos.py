"""
Tests de integración del registro de pagos (SQLite en memoria)

Cubre:
- FIFO sobre varias ventas del cliente, con empate por id
- DIRECT con pago mayor al saldo -> sin escrituras
- Varias líneas de pago (muchos a muchos transacción <-> obligación)
- Modos FULL / PARTIAL del cobro FIFO
- Atomicidad: una falla en la última aplicación deja todo como estaba
- Invariantes: pagado + pendiente == total y SUM(aplicaciones) == pagado
"""
import pytest
from datetime import datetime
from decimal import Decimal

from finanzas.domain.enums import EstadoPago, EstrategiaAplicacion, ModoCobro, TipoObligacion, TipoTransaccion
from finanzas.domain.models import CuentaDinero
from finanzas.domain.models_obligaciones import Venta, Gasto
from finanzas.domain.models_pagos import TransaccionPago, AplicacionPago
from finanzas.infrastructure.repositories import AplicacionRepository
from finanzas.application.dtos import LineaPagoIn
from finanzas.application.errors import (
    ValidacionError, ReglaNegocioError, CuentaNoEncontradaError, NoEncontradoError,
)
from finanzas.application.services_pagos import PagosService
from finanzas.application.services_saldos import verificar_consistencia, estado_obligacion


def _efectivo(monto, moneda=None):
    return LineaPagoIn(monto=Decimal(str(monto)), metodo_pago="EFECTIVO", moneda=moneda)


class TestPagoFIFO:
    """Cobro FIFO sobre las ventas pendientes de un cliente"""

    def test_fifo_ejemplo_100_50_30(self, uow_factory, reglas, crear_venta, leer, datos_base):
        """Test: pago 120 sobre [100, 50, 30] -> pendientes [0, 30, 30]"""
        v1 = crear_venta(100, fecha=datetime(2026, 1, 1))
        v2 = crear_venta(50, fecha=datetime(2026, 1, 2))
        v3 = crear_venta(30, fecha=datetime(2026, 1, 3))

        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(120)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
        )

        assert [(a.id_venta, a.monto_aplicado) for a in resultado.aplicaciones] == [
            (v1, Decimal("100.00")), (v2, Decimal("20.00")),
        ]
        assert resultado.total_aplicado == Decimal("120.00")
        assert resultado.remanente_no_aplicado == Decimal("0.00")

        assert leer(Venta, v1).saldo_pendiente == Decimal("0")
        assert leer(Venta, v1).estado == EstadoPago.PAGADO.value
        assert leer(Venta, v2).saldo_pendiente == Decimal("30")
        assert leer(Venta, v2).estado == EstadoPago.PARCIAL.value
        assert leer(Venta, v3).saldo_pendiente == Decimal("30")
        assert leer(Venta, v3).estado == EstadoPago.PENDIENTE.value

        for id_venta in (v1, v2, v3):
            assert verificar_consistencia(uow_factory(), TipoObligacion.VENTA, id_venta)["consistente"]

    def test_transaccion_va_a_la_cuenta_resuelta(self, uow_factory, reglas, crear_venta, leer, datos_base):
        crear_venta(100)
        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(100)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
        )
        transaccion = leer(TransaccionPago, resultado.transacciones[0].id)
        assert transaccion.id_cuenta == datos_base["cuentas"]["CASH UYU"]
        assert transaccion.tipo == TipoTransaccion.INGRESO.value
        assert transaccion.id_cliente == datos_base["cliente"]

    def test_empate_de_fecha_por_id(self, uow_factory, reglas, crear_venta, leer, datos_base):
        """Test: misma fecha -> se paga primero la de id menor"""
        primera = crear_venta(40, fecha=datetime(2026, 2, 1))
        segunda = crear_venta(40, fecha=datetime(2026, 2, 1))

        PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(40)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
        )
        assert leer(Venta, primera).estado == EstadoPago.PAGADO.value
        assert leer(Venta, segunda).estado == EstadoPago.PENDIENTE.value

    def test_solo_ventas_del_cliente_y_la_moneda(self, uow_factory, reglas, crear_venta, leer, datos_base):
        ajena = crear_venta(50, fecha=datetime(2025, 1, 1), id_cliente=datos_base["otro_cliente"])
        en_dolares = crear_venta(50, fecha=datetime(2025, 1, 1), moneda="USD")
        propia = crear_venta(50, fecha=datetime(2026, 1, 1))

        PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(50, "UYU")], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
        )
        assert leer(Venta, propia).estado == EstadoPago.PAGADO.value
        assert leer(Venta, ajena).estado == EstadoPago.PENDIENTE.value
        assert leer(Venta, en_dolares).estado == EstadoPago.PENDIENTE.value

    def test_modo_full_descarta_excedente(self, uow_factory, reglas, crear_venta, contar, datos_base):
        """Test: FULL acepta pagar de más; la transacción guarda el total y el remanente se informa"""
        crear_venta(100)
        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(130)], EstrategiaAplicacion.FIFO,
            id_cliente=datos_base["cliente"], modo=ModoCobro.FULL,
        )
        assert resultado.transacciones[0].monto == Decimal("130.00")
        assert resultado.total_aplicado == Decimal("100.00")
        assert resultado.remanente_no_aplicado == Decimal("30.00")
        assert contar(AplicacionPago) == 1

    def test_modo_partial_rechaza_pago_mayor_a_la_deuda(self, uow_factory, reglas, crear_venta, contar, datos_base):
        crear_venta(100)
        with pytest.raises(ReglaNegocioError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(130)], EstrategiaAplicacion.FIFO,
                id_cliente=datos_base["cliente"], modo=ModoCobro.PARTIAL,
            )
        assert contar(TransaccionPago) == 0

    def test_cliente_sin_deuda(self, uow_factory, reglas, datos_base):
        with pytest.raises(ReglaNegocioError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(10)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
            )

    def test_fifo_de_gastos(self, uow_factory, reglas, crear_gasto, leer):
        """Test: FIFO sobre gastos pendientes genera egresos"""
        g1 = crear_gasto(60, fecha=datetime(2026, 1, 1))
        g2 = crear_gasto(60, fecha=datetime(2026, 1, 5))
        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.GASTO,
            [LineaPagoIn(monto=Decimal("90"), metodo_pago="TRANSFERENCIA")],
            EstrategiaAplicacion.FIFO,
        )
        assert resultado.transacciones[0].tipo == TipoTransaccion.EGRESO.value
        assert leer(Gasto, g1).estado == EstadoPago.PAGADO.value
        assert leer(Gasto, g2).saldo_pendiente == Decimal("30")


class TestPagoDirecto:
    """Pago DIRECT sobre una obligación puntual"""

    def test_pago_mayor_al_saldo_no_escribe(self, uow_factory, reglas, crear_venta, leer, contar):
        """Test: 150 contra pendiente 100 -> ReglaNegocioError y ninguna escritura"""
        id_venta = crear_venta(100)
        with pytest.raises(ReglaNegocioError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(150)], EstrategiaAplicacion.DIRECT, id_obligacion=id_venta
            )
        assert contar(TransaccionPago) == 0
        assert contar(AplicacionPago) == 0
        assert leer(Venta, id_venta).saldo_pendiente == Decimal("100")

    def test_varias_lineas_varias_cuentas(self, uow_factory, reglas, crear_venta, leer, datos_base):
        """Test: 60 EFECTIVO + 40 TRANSFERENCIA -> dos transacciones en CASH UYU y BANK UYU"""
        id_venta = crear_venta(100)
        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA,
            [_efectivo(60), LineaPagoIn(monto=Decimal("40"), metodo_pago="TRANSFERENCIA", referencia="TRF-1")],
            EstrategiaAplicacion.DIRECT,
            id_obligacion=id_venta,
        )
        assert [t.id_cuenta for t in resultado.transacciones] == [
            datos_base["cuentas"]["CASH UYU"], datos_base["cuentas"]["BANK UYU"],
        ]
        assert [a.monto_aplicado for a in resultado.aplicaciones] == [Decimal("60.00"), Decimal("40.00")]
        assert leer(Venta, id_venta).estado == EstadoPago.PAGADO.value

        estado = estado_obligacion(uow_factory(), TipoObligacion.VENTA, id_venta)
        assert estado.pagado == Decimal("100.00")
        assert estado.pendiente == Decimal("0.00")

    def test_venta_cancelada(self, uow_factory, reglas, crear_venta):
        id_venta = crear_venta(100, estado=EstadoPago.CANCELADO)
        with pytest.raises(ReglaNegocioError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(10)], EstrategiaAplicacion.DIRECT, id_obligacion=id_venta
            )

    def test_moneda_distinta_a_la_obligacion(self, uow_factory, reglas, crear_venta):
        id_venta = crear_venta(100)
        with pytest.raises(ReglaNegocioError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(10, "USD")], EstrategiaAplicacion.DIRECT, id_obligacion=id_venta
            )

    def test_obligacion_inexistente(self, uow_factory, reglas, datos_base):
        with pytest.raises(NoEncontradoError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(10)], EstrategiaAplicacion.DIRECT, id_obligacion=404
            )

    def test_cuenta_no_encontrada_no_escribe(self, uow_factory, session_factory, reglas, crear_venta, leer, contar):
        """Test: sin cuenta activa BANK UYU la operación completa se deshace"""
        id_venta = crear_venta(100)
        db = session_factory()
        db.query(CuentaDinero).filter_by(nombre="BANK UYU").update({"activa": False})
        db.commit()
        db.close()

        with pytest.raises(CuentaNoEncontradaError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA,
                [_efectivo(50), LineaPagoIn(monto=Decimal("50"), metodo_pago="DEBITO")],
                EstrategiaAplicacion.DIRECT,
                id_obligacion=id_venta,
            )
        assert contar(TransaccionPago) == 0
        assert leer(Venta, id_venta).estado == EstadoPago.PENDIENTE.value


class TestValidacionLineas:
    """Errores de forma: se juntan todos y no se abre transacción"""

    def test_errores_acumulados(self, uow_factory, reglas, datos_base):
        with pytest.raises(ValidacionError) as exc:
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA,
                [LineaPagoIn(monto=Decimal("0"), metodo_pago="CHEQUE")],
                EstrategiaAplicacion.FIFO,
            )
        # monto, método y falta de id_cliente
        assert len(exc.value.errores) == 3

    def test_sin_lineas(self, uow_factory, reglas):
        with pytest.raises(ValidacionError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [], EstrategiaAplicacion.DIRECT, id_obligacion=1
            )

    def test_fifo_con_monedas_mezcladas(self, uow_factory, reglas, datos_base):
        with pytest.raises(ValidacionError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(10, "UYU"), _efectivo(10, "USD")],
                EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"],
            )


class TestMuchosAMuchos:
    """Varias líneas repartidas sobre varias obligaciones"""

    def test_dos_lineas_dos_ventas(self, uow_factory, reglas, crear_venta, datos_base):
        """Test: líneas [80, 70] sobre ventas [100, 50] -> 3 aplicaciones"""
        v1 = crear_venta(100, fecha=datetime(2026, 1, 1))
        v2 = crear_venta(50, fecha=datetime(2026, 1, 2))
        resultado = PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA,
            [_efectivo(80), LineaPagoIn(monto=Decimal("70"), metodo_pago="TRANSFERENCIA")],
            EstrategiaAplicacion.FIFO,
            id_cliente=datos_base["cliente"],
        )
        t1, t2 = [t.id for t in resultado.transacciones]
        assert [(a.id_transaccion, a.id_venta, a.monto_aplicado) for a in resultado.aplicaciones] == [
            (t1, v1, Decimal("80.00")),
            (t2, v1, Decimal("20.00")),
            (t2, v2, Decimal("50.00")),
        ]
        for id_venta in (v1, v2):
            consistencia = verificar_consistencia(uow_factory(), TipoObligacion.VENTA, id_venta)
            assert consistencia["consistente"], consistencia["problemas"]


class TestAtomicidad:
    """Una falla a mitad de camino no deja nada escrito"""

    def test_falla_en_la_ultima_aplicacion(self, monkeypatch, uow_factory, reglas, crear_venta, leer, contar, datos_base):
        """Test: FIFO sobre 3 ventas, falla el 3er insert de aplicación -> todo igual que antes"""
        ventas = [
            crear_venta(100, fecha=datetime(2026, 1, 1)),
            crear_venta(50, fecha=datetime(2026, 1, 2)),
            crear_venta(30, fecha=datetime(2026, 1, 3)),
        ]
        original = AplicacionRepository.add
        llamadas = {"n": 0}

        def add_que_falla(self, aplicacion):
            llamadas["n"] += 1
            if llamadas["n"] == 3:
                raise RuntimeError("fallo simulado al insertar la aplicación")
            return original(self, aplicacion)

        monkeypatch.setattr(AplicacionRepository, "add", add_que_falla)

        with pytest.raises(RuntimeError):
            PagosService(uow_factory(), reglas).registrar_pago(
                TipoObligacion.VENTA, [_efectivo(180)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
            )

        assert llamadas["n"] == 3
        assert contar(TransaccionPago) == 0
        assert contar(AplicacionPago) == 0
        assert [leer(Venta, v).saldo_pendiente for v in ventas] == [Decimal("100"), Decimal("50"), Decimal("30")]
        assert all(leer(Venta, v).estado == EstadoPago.PENDIENTE.value for v in ventas)


class TestHistorial:
    def test_historial_cliente(self, uow_factory, reglas, crear_venta, datos_base):
        crear_venta(100)
        PagosService(uow_factory(), reglas).registrar_pago(
            TipoObligacion.VENTA, [_efectivo(30)], EstrategiaAplicacion.FIFO, id_cliente=datos_base["cliente"]
        )
        historial = PagosService(uow_factory(), reglas).historial_pagos_cliente(datos_base["cliente"])
        assert len(historial) == 1
        assert historial[0].cuenta == "CASH UYU"
        assert historial[0].monto_aplicado == Decimal("30.00")
