import logging

from py_leadcalc import (AngleCorrection, CorrectionMethod, IterationEvent, LoggingObserver, RecordingObserver,
                         ShootingResult, SolverObserver, SolverStatus)


def _event(correction=None):
    return IterationEvent(2, 45.0, 12.5, 130.0, 9.8, False, True, correction, False)


def test_observers_satisfy_protocol():
    assert isinstance(LoggingObserver(), SolverObserver)
    assert isinstance(RecordingObserver(), SolverObserver)
    assert not isinstance(object(), SolverObserver)


def test_recording_observer():
    observer = RecordingObserver()
    result = ShootingResult(45.0, 12.0, True, 1, 0.4, 9.8)
    observer.on_iteration(_event())
    observer.on_finish(result)
    assert observer.events == [_event()]
    assert observer.results == [result]
    observer.clear()
    assert observer.events == [] and observer.results == []


def test_logging_observer(caplog):
    observer = LoggingObserver(logging.INFO)
    correction = AngleCorrection(0.25, -0.5, 0.8, 1.0, CorrectionMethod.NEWTON)
    with caplog.at_level(logging.INFO, logger='py_leadcalc'):
        observer.on_iteration(_event(correction))
        observer.on_iteration(_event())
        observer.on_finish(ShootingResult(45.0, 12.0, False, 15, 30.0, 9.8, SolverStatus.EXHAUSTED, 40))
    messages = [record.getMessage() for record in caplog.records]
    assert "Iteration 2" in messages[0]
    assert "d_az=0.2500" in messages[0]
    assert "correction: none" in messages[1]
    assert "EXHAUSTED" in messages[2] and "evaluations=40" in messages[2]


def test_logging_observer_disabled_level(caplog):
    observer = LoggingObserver(logging.DEBUG)
    logger = logging.getLogger('py_leadcalc')
    previous = logger.level
    logger.setLevel(logging.INFO)
    try:
        with caplog.at_level(logging.DEBUG):
            observer.on_iteration(_event())
    finally:
        logger.setLevel(previous)
    assert not [r for r in caplog.records if r.name == 'py_leadcalc']
