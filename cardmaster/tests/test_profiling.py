from cardmaster import performance_logger


def test_route_names_use_flask_rule():
    assert performance_logger.route_name('PUT', '/api/tasks/<task_id>') == 'Editar tarea'
    assert performance_logger.route_name('GET', '/otra') == 'GET /otra'


def test_slow_request_goes_to_both_logs(tmp_path, monkeypatch):
    monkeypatch.setattr(performance_logger, 'LOGS_DIR', str(tmp_path))

    performance_logger.record_request('DELETE', '/api/transactions/AB12CD34',
                                      '/api/transactions/<tx_id>', 403, 850, 'user')
    performance_logger.record_request('GET', '/api/session', '/api/session', 200, 5)

    perf = (tmp_path / 'performance.log').read_text(encoding='utf-8')
    assert 'Acción: Eliminar transacción' in perf
    assert 'Usuario: anónimo' in perf
    assert perf.count('[PERFORMANCE]') == 2

    slow = (tmp_path / 'slow_routes.log').read_text(encoding='utf-8')
    assert slow.startswith('[CRITICAL]')
    assert 'Estado: 403' in slow
    assert 'umbral: 700 ms' in slow


def test_profile_function_counts_calls(tmp_path, monkeypatch):
    monkeypatch.setattr(performance_logger, 'ENABLE_PROFILING', True)
    monkeypatch.setattr(performance_logger, 'LOGS_DIR', str(tmp_path))
    monkeypatch.setattr(performance_logger, 'THRESHOLD_WARNING', 0)

    @performance_logger.profile_function(name='Prueba lenta')
    def work(x):
        return x * 2

    before = performance_logger.call_counts().get('Prueba lenta', 0)
    assert work(21) == 42
    assert performance_logger.call_counts()['Prueba lenta'] == before + 1
    assert 'Función: Prueba lenta' in (tmp_path / 'slow_functions.log').read_text(encoding='utf-8')


def test_profile_function_disabled_returns_original(monkeypatch):
    monkeypatch.setattr(performance_logger, 'ENABLE_PROFILING', False)

    def work():
        return 1

    assert performance_logger.profile_function(work) is work
