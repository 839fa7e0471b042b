from datetime import time

from timekeeping.attendance.factory import AttendanceStrategyFactory
from timekeeping.attendance.strategies.grace_strategy import GracePeriodStrategy
from timekeeping.attendance.strategies.late_strategy import LateStrategy
from timekeeping.attendance.strategies.on_time_strategy import OnTimeStrategy
from timekeeping.attendance.strategies.undertime_strategy import UndertimeStrategy
from timekeeping.core.enums import AttendanceStatus, TardinessKind


def test_factory_time_in_before_start_is_on_time():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_time_in(punch=time(7, 59, 59))

    assert isinstance(strategy, OnTimeStrategy)
    assert strategy.decide_time_in(punch=time(7, 59, 59)).status == AttendanceStatus.ON_TIME


def test_factory_time_in_exactly_at_start_is_on_time():
    assert isinstance(AttendanceStrategyFactory().for_time_in(punch=time(8, 0, 0)), OnTimeStrategy)


def test_factory_time_in_at_grace_cutoff_is_within_grace():
    strategy = AttendanceStrategyFactory().for_time_in(punch=time(8, 10, 0))

    assert isinstance(strategy, GracePeriodStrategy)
    decision = strategy.decide_time_in(punch=time(8, 10, 0))
    assert decision.status == AttendanceStatus.WITHIN_GRACE
    assert decision.tardiness is None


def test_factory_time_in_one_second_after_cutoff_is_late():
    strategy = AttendanceStrategyFactory().for_time_in(punch=time(8, 10, 1))

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_time_in(punch=time(8, 10, 1))
    assert decision.status == AttendanceStatus.LATE
    assert decision.tardiness == TardinessKind.LATE


def test_factory_time_out_before_end_is_undertime():
    strategy = AttendanceStrategyFactory().for_time_out(punch=time(16, 59))

    assert isinstance(strategy, UndertimeStrategy)
    decision = strategy.decide_time_out(punch=time(16, 59), current=AttendanceStatus.ON_TIME)
    assert decision.status == AttendanceStatus.UNDERTIME
    assert decision.tardiness == TardinessKind.UNDERTIME


def test_factory_time_out_at_end_keeps_time_in_status():
    strategy = AttendanceStrategyFactory().for_time_out(punch=time(17, 0))

    assert isinstance(strategy, OnTimeStrategy)
    assert strategy.decide_time_out(punch=time(17, 0), current=AttendanceStatus.LATE).status == AttendanceStatus.LATE


def test_factory_respects_custom_policy_times():
    factory = AttendanceStrategyFactory(standard_start=time(9, 0), grace_cutoff=time(9, 5), standard_end=time(18, 0))

    assert isinstance(factory.for_time_in(punch=time(8, 30)), OnTimeStrategy)
    assert isinstance(factory.for_time_in(punch=time(9, 6)), LateStrategy)
    assert isinstance(factory.for_time_out(punch=time(17, 30)), UndertimeStrategy)


def test_undertime_strategy_time_in_is_neutral():
    decision = UndertimeStrategy().decide_time_in(punch=time(8, 0))

    assert decision.status == AttendanceStatus.ON_TIME
    assert decision.tardiness is None
