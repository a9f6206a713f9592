from datetime import timedelta

import pytest

from daylight_wallpaper.time_period import Period, get_current_period, take_a_guess


CHRONOLOGICAL = [
    Period.NIGHT,
    Period.NAUTICAL_DAWN,
    Period.CIVIL_DAWN,
    Period.MORNING,
    Period.NOON,
    Period.LATE_AFTERNOON,
    Period.CIVIL_DUSK,
    Period.NAUTICAL_DUSK,
    Period.NIGHT,
]


class TestGetCurrentPeriod:
    @pytest.mark.parametrize("hours,expected", [
        (0.0, Period.NIGHT),
        (4.99, Period.NIGHT),
        (5.0, Period.NAUTICAL_DAWN),
        (5.25, Period.NAUTICAL_DAWN),
        (5.5, Period.CIVIL_DAWN),
        (6.0, Period.MORNING),
        (11.99, Period.MORNING),
        (12.0, Period.NOON),
        (15.0, Period.LATE_AFTERNOON),
        (17.99, Period.LATE_AFTERNOON),
        (18.0, Period.CIVIL_DUSK),
        (18.5, Period.NAUTICAL_DUSK),
        (19.0, Period.NIGHT),
        (23.99, Period.NIGHT),
    ])
    def test_classification(self, sun_times, at, hours, expected):
        assert get_current_period(sun_times(), at(hours)) == expected

    def test_sunrise_is_morning(self, sun_times):
        st = sun_times()
        assert get_current_period(st, st.sunrise) == Period.MORNING
        assert get_current_period(st, st.sunrise - timedelta(seconds=1)) == Period.CIVIL_DAWN

    def test_sunset_is_civil_dusk(self, sun_times):
        st = sun_times()
        assert get_current_period(st, st.sunset) == Period.CIVIL_DUSK
        assert get_current_period(st, st.sunset - timedelta(seconds=1)) == Period.LATE_AFTERNOON

    @pytest.mark.parametrize("fraction", [0.5, 0.75])
    def test_day_is_partitioned_in_order(self, sun_times, window, fraction):
        """Walking the whole day visits every period once, in order, without gaps."""
        st = sun_times(fraction=fraction)
        seen = []
        moment = window.begin
        while moment < window.end:
            period = get_current_period(st, moment)
            if not seen or seen[-1] != period:
                seen.append(period)
            moment += timedelta(minutes=1)

        assert seen == CHRONOLOGICAL

    def test_each_boundary_starts_its_period(self, sun_times):
        st = sun_times()
        starts = [
            (st.nautical_twilight_begin, Period.NAUTICAL_DAWN),
            (st.civil_twilight_begin, Period.CIVIL_DAWN),
            (st.sunrise, Period.MORNING),
            (st.solar_noon, Period.NOON),
            (st.late_afternoon, Period.LATE_AFTERNOON),
            (st.sunset, Period.CIVIL_DUSK),
            (st.civil_twilight_end, Period.NAUTICAL_DUSK),
            (st.nautical_twilight_end, Period.NIGHT),
        ]
        for moment, period in starts:
            assert get_current_period(st, moment) == period

    def test_late_afternoon_at_sixteen(self, sun_times, at):
        st = sun_times()
        assert st.late_afternoon == at(15)
        assert get_current_period(st, at(16)) == Period.LATE_AFTERNOON


class TestTakeAGuess:
    @pytest.mark.parametrize("hour,expected", [
        (13, Period.NOON),
        (2, Period.NIGHT),
        (19, Period.NAUTICAL_DUSK),
        (0, Period.NIGHT),
        (4, Period.NAUTICAL_DAWN),
        (5, Period.NAUTICAL_DAWN),
        (6, Period.CIVIL_DAWN),
        (7, Period.CIVIL_DAWN),
        (8, Period.MORNING),
        (11, Period.MORNING),
        (12, Period.NOON),
        (14, Period.NOON),
        (15, Period.LATE_AFTERNOON),
        (17, Period.LATE_AFTERNOON),
        (18, Period.CIVIL_DUSK),
        (20, Period.NAUTICAL_DUSK),
        (21, Period.NIGHT),
        (23, Period.NIGHT),
    ])
    def test_table(self, hour, expected):
        assert take_a_guess(hour) == expected

    def test_every_hour_has_a_period(self):
        assert all(isinstance(take_a_guess(h), Period) for h in range(24))

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_invalid_hour(self, hour):
        with pytest.raises(ValueError):
            take_a_guess(hour)


class TestPeriod:
    def test_values_are_file_stems(self):
        assert [p.value for p in Period] == [
            "night", "nautical_dawn", "civil_dawn", "morning",
            "noon", "late_afternoon", "civil_dusk", "nautical_dusk",
        ]
