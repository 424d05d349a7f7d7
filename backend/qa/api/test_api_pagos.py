"""
Tests de API - Ventas, cobros y traducción de errores del motor a HTTP
"""
import pytest
from decimal import Decimal


def _crear_venta(client, id_cliente, total, lineas=None, **extra):
    body = {"id_cliente": id_cliente, "total": str(total), "lineas": lineas or []}
    body.update(extra)
    r = client.post("/api/ventas", json=body)
    assert r.status_code == 201, r.text
    return r.json()


class TestVentasAPI:
    def test_crear_venta_con_pago_inicial_parcial(self, client, datos_base):
        venta = _crear_venta(
            client, datos_base["cliente"], 100,
            lineas=[{"monto": "40", "metodo_pago": "EFECTIVO"}],
            fecha_vencimiento="2026-02-01",
        )
        assert venta["escenario"] == "PARTIAL"
        assert venta["estado"] == "PAGO PARCIAL"
        assert Decimal(venta["saldo_pendiente"]) == Decimal("60")
        assert len(venta["transacciones"]) == 1

        r = client.get(f"/api/ventas/{venta['id']}")
        assert r.status_code == 200
        detalle = r.json()
        assert detalle["cliente_nombre"] == "Juan Pérez"
        assert len(detalle["aplicaciones"]) == 1

    def test_venta_inexistente(self, client, datos_base):
        r = client.get("/api/ventas/999")
        assert r.status_code == 404
        assert r.json()["detail"]["error"] == "NO_ENCONTRADO"

    def test_cancelar_venta_sin_pagos(self, client, datos_base):
        venta = _crear_venta(client, datos_base["cliente"], 50)
        r = client.post(f"/api/ventas/{venta['id']}/cancelar")
        assert r.status_code == 200
        assert r.json()["estado"] == "CANCELADO"

        # Una venta cancelada no admite pagos
        r = client.post("/api/cobros/pagos", json={
            "estrategia": "DIRECT",
            "id_obligacion": venta["id"],
            "lineas": [{"monto": "10", "metodo_pago": "EFECTIVO"}],
        })
        assert r.status_code == 400

    def test_consistencia(self, client, datos_base):
        venta = _crear_venta(client, datos_base["cliente"], 80, lineas=[{"monto": "80", "metodo_pago": "DEBITO"}])
        r = client.get(f"/api/ventas/{venta['id']}/consistencia")
        assert r.status_code == 200
        assert r.json()["consistente"] is True


class TestCobrosAPI:
    def test_pago_fifo(self, client, datos_base):
        id_cliente = datos_base["cliente"]
        v1 = _crear_venta(client, id_cliente, 100, fecha="2026-01-01T10:00:00")
        v2 = _crear_venta(client, id_cliente, 50, fecha="2026-01-02T10:00:00")

        r = client.post("/api/cobros/pagos", json={
            "estrategia": "FIFO",
            "id_cliente": id_cliente,
            "lineas": [{"monto": "120", "metodo_pago": "TRANSFERENCIA"}],
        })
        assert r.status_code == 200, r.text
        cuerpo = r.json()
        assert Decimal(cuerpo["total_aplicado"]) == Decimal("120")
        assert [a["id_venta"] for a in cuerpo["aplicaciones"]] == [v1["id"], v2["id"]]

        r = client.get(f"/api/cobros/clientes/{id_cliente}/pendientes")
        assert r.status_code == 200
        pendientes = r.json()
        assert Decimal(pendientes["deuda_total"]) == Decimal("30")
        assert [v["id"] for v in pendientes["ventas"]] == [v2["id"]]

        r = client.get("/api/cobros/clientes-con-deuda")
        assert [c["id_cliente"] for c in r.json()] == [id_cliente]

    def test_pendientes_por_moneda(self, client, datos_base):
        id_cliente = datos_base["cliente"]
        _crear_venta(client, id_cliente, 1000)
        venta_usd = _crear_venta(client, id_cliente, 10, moneda="USD")

        r = client.get(f"/api/cobros/clientes/{id_cliente}/pendientes")
        assert r.json()["moneda"] == "UYU"
        assert Decimal(r.json()["deuda_total"]) == Decimal("1000")

        r = client.get(f"/api/cobros/clientes/{id_cliente}/pendientes", params={"moneda": "USD"})
        cuerpo = r.json()
        assert Decimal(cuerpo["deuda_total"]) == Decimal("10")
        assert [v["id"] for v in cuerpo["ventas"]] == [venta_usd["id"]]

        deudas = {c["moneda"]: Decimal(c["saldo_pendiente"]) for c in client.get("/api/cobros/clientes-con-deuda").json()}
        assert deudas == {"USD": Decimal("10"), "UYU": Decimal("1000")}

    def test_pago_directo_mayor_al_saldo(self, client, datos_base):
        venta = _crear_venta(client, datos_base["cliente"], 100)
        r = client.post("/api/cobros/pagos", json={
            "estrategia": "DIRECT",
            "id_obligacion": venta["id"],
            "lineas": [{"monto": "150", "metodo_pago": "EFECTIVO"}],
        })
        assert r.status_code == 400
        assert r.json()["detail"]["error"] == "REGLA_NEGOCIO"

    def test_directo_sin_obligacion(self, client, datos_base):
        r = client.post("/api/cobros/pagos", json={
            "estrategia": "DIRECT",
            "lineas": [{"monto": "10", "metodo_pago": "EFECTIVO"}],
        })
        assert r.status_code == 422
        detalle = r.json()["detail"]
        assert detalle["error"] == "VALIDACION"
        assert detalle["detalle"]["errores"]

    def test_metodo_de_pago_invalido(self, client, datos_base):
        venta = _crear_venta(client, datos_base["cliente"], 100)
        r = client.post("/api/cobros/pagos", json={
            "estrategia": "DIRECT",
            "id_obligacion": venta["id"],
            "lineas": [{"monto": "10", "metodo_pago": "CHEQUE"}],
        })
        assert r.status_code == 422

    def test_historial_cliente(self, client, datos_base):
        _crear_venta(client, datos_base["cliente"], 30, lineas=[{"monto": "30", "metodo_pago": "EFECTIVO"}])
        r = client.get(f"/api/cobros/clientes/{datos_base['cliente']}/historial")
        assert r.status_code == 200
        assert [h["cuenta"] for h in r.json()] == ["CASH UYU"]


class TestGastosAPI:
    def test_batch_y_pago_de_obligacion(self, client, datos_base):
        r = client.post("/api/gastos/batch", json={"gastos": [
            {
                "fecha": "2026-01-10T08:00:00",
                "monto_total": "200",
                "moneda": "UYU",
                "id_categoria": datos_base["categoria"],
                "fecha_vencimiento": "2026-02-10",
            },
        ]})
        assert r.status_code == 201, r.text
        id_gasto = r.json()[0]["id"]
        assert r.json()[0]["escenario"] == "NONE"

        r = client.post("/api/gastos/obligaciones/pagar", json={
            "id_gasto": id_gasto,
            "lineas": [{"monto": "200", "metodo_pago": "TRANSFERENCIA"}],
        })
        assert r.status_code == 200, r.text

        r = client.get(f"/api/gastos/obligaciones/{id_gasto}/estado")
        assert r.json()["estado"] == "PAGO"
        assert client.get("/api/gastos/obligaciones/pendientes").json() == []

    def test_batch_invalido(self, client, datos_base):
        r = client.post("/api/gastos/batch", json={"gastos": [{"moneda": "UYU"}]})
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "VALIDACION"


class TestCambiosAPI:
    def test_saldo_insuficiente(self, client, datos_base):
        cuentas = datos_base["cuentas"]
        r = client.post("/api/cambios", json={
            "id_cuenta_origen": cuentas["CASH UYU"],
            "id_cuenta_destino": cuentas["CASH USD"],
            "monto_input": "4000",
            "moneda_input": "ORIGEN",
            "factor_conversion": "40",
        })
        assert r.status_code == 409
        assert r.json()["detail"]["error"] == "SALDO_INSUFICIENTE"

    def test_cambio_con_saldo(self, client, datos_base, fondear):
        cuentas = datos_base["cuentas"]
        fondear("CASH UYU", 4000)
        r = client.post("/api/cambios", json={
            "id_cuenta_origen": cuentas["CASH UYU"],
            "id_cuenta_destino": cuentas["CASH USD"],
            "monto_input": "4000",
            "moneda_input": "ORIGEN",
            "factor_conversion": "40",
        })
        assert r.status_code == 201, r.text
        assert Decimal(r.json()["monto_destino"]) == Decimal("100")

        r = client.get(f"/api/cambios/cuentas/{cuentas['CASH USD']}/saldo")
        assert Decimal(r.json()["saldo"]) == Decimal("100")

    def test_cambio_que_redondea_a_cero(self, client, datos_base, fondear):
        cuentas = datos_base["cuentas"]
        fondear("CASH UYU", 100)
        r = client.post("/api/cambios", json={
            "id_cuenta_origen": cuentas["CASH UYU"],
            "id_cuenta_destino": cuentas["CASH USD"],
            "monto_input": "0.10",
            "moneda_input": "ORIGEN",
            "factor_conversion": "40",
        })
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "VALIDACION"
