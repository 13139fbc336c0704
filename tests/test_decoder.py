"""Tests for the Raidar status packet decoder."""

import locale

import pytest

from raidar_monitor.status.decoder import (
    decode, parse_temperature, parse_fan, parse_ups, parse_volume, parse_disk, parse_model,
    StatusDecodeError, UNKNOWN_MODEL, UNKNOWN_FIRMWARE, UNKNOWN_VERSION
)
from raidar_monitor.status.models import Status, Temperature

from conftest import HEADER, SAMPLE_BODY, make_packet

SPEC_EXAMPLE_BODY = (
    "00:0d:a2:01:09:bd\tNASgul\t192.168.1.5\t"
    "model!!0!!mode=pro::descr=ReadyNAS NV::arch=nsp\n"
    "fan!!0!!status=ok::descr=2352RPM\n"
    "disk!!1!!status=ok::descr=Channel 1: ST3320620AS 298 GB\n"
    "\tFS_CHECK\n\t66\t1\t1\n"
)


def _body_with_properties(*lines: str) -> str:
    return "aa:bb:cc:dd:ee:ff\tnas\t10.0.0.5\t" + "\n".join(lines) + "\n\tRAIDiator!!version=4.2.0\t1\n"


class TestPacketStructure:
    """Top level field handling."""

    def test_identity_fields(self):
        report = decode(make_packet())
        assert report.mac == "00:0d:a2:01:09:bd"
        assert report.name == "NASgul"
        assert report.ip == "192.168.1.5"
        assert report.model == "ReadyNAS NV"

    def test_firmware_fields(self):
        report = decode(make_packet())
        assert report.software_name == "RAIDiator"
        assert report.software_version == "4.1.8"
        assert report.device_time == 1314924646
        assert report.boot_flag == "66"

    def test_accepts_text_input(self):
        assert decode(HEADER.decode("ascii") + SAMPLE_BODY) == decode(make_packet())

    def test_example_packet_with_extra_fields(self):
        report = decode(make_packet(SPEC_EXAMPLE_BODY))
        assert report.model == "ReadyNAS NV"
        assert report.software_name == "FS"
        assert report.software_version == UNKNOWN_VERSION
        assert report.device_time is None
        assert report.boot_flag == "66"
        assert len(report.fans) == 1
        assert len(report.disks) == 1

    def test_fewer_than_five_fields_is_structural_error(self):
        with pytest.raises(StatusDecodeError):
            decode(make_packet("mac\tname\tip\tfan!!0!!status=ok::descr=1RPM"))

    def test_structural_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode(HEADER)

    def test_header_only_short_packet_raises(self):
        with pytest.raises(StatusDecodeError):
            decode(b"too short")

    def test_exactly_five_fields_decodes_without_boot_flag(self):
        report = decode(make_packet("mac\tname\tip\t\tRAIDiator!!version=4.2.1"))
        assert report.boot_flag == ""
        assert report.software_version == "4.2.1"

    def test_defaults_when_version_and_model_missing(self):
        report = decode(make_packet("mac\tname\tip\t\t\t0"))
        assert report.model == UNKNOWN_MODEL
        assert report.software_name == UNKNOWN_FIRMWARE
        assert report.software_version == UNKNOWN_VERSION
        assert report.ups is None
        assert report.temperatures == []

    def test_decode_is_idempotent(self):
        raw = make_packet()
        first = decode(raw)
        second = decode(raw)
        assert first == second
        assert first is not second
        assert first.disks is not second.disks


class TestPropertyLines:
    """Property line dispatch and malformed line isolation."""

    def test_all_component_types_decoded(self):
        report = decode(make_packet())
        assert len(report.temperatures) == 1
        assert len(report.fans) == 1
        assert report.ups is not None
        assert len(report.volumes) == 1
        assert len(report.disks) == 2

    def test_malformed_lines_degrade_to_unknown(self):
        body = _body_with_properties(
            "fan!!0!!status=ok::descr=1630RPM",
            "disk!!1!!status=ok::descr=Channel 1: ST3320620AS 298 GB",
            "temp!!0!!garbage",
            "disk!!2!!nonsense",
            "volume!!1!!status=ok::descr=no capacity here",
        )
        report = decode(make_packet(body))

        assert report.fans[0].status == Status.OK
        assert report.disks[0].status == Status.OK
        assert report.temperatures == [Temperature(index=0)]
        assert report.disks[1].status == Status.UNKNOWN
        assert report.disks[1].index == 2
        assert report.volumes[0].status == Status.UNKNOWN

    def test_non_property_lines_are_skipped(self):
        body = _body_with_properties(
            "just some text",
            "Disk!!1!!status=ok::descr=Channel 1: X 1 GB",
            "disk!!x!!status=ok::descr=Channel 1: X 1 GB",
            "fan!!1!!status=ok::descr=900RPM",
        )
        report = decode(make_packet(body))
        assert report.disks == []
        assert len(report.fans) == 1

    def test_unknown_property_types_ignored(self):
        body = _body_with_properties("psu!!1!!status=ok::descr=fine", "fan!!1!!status=ok::descr=900RPM")
        report = decode(make_packet(body))
        assert len(report.fans) == 1

    def test_indices_kept_from_wire(self):
        body = _body_with_properties(
            "disk!!4!!status=ok::descr=Channel 4: X 1 GB",
            "disk!!2!!status=ok::descr=Channel 2: X 1 GB",
        )
        report = decode(make_packet(body))
        assert [disk.index for disk in report.disks] == [4, 2]

    def test_model_without_match_uses_default(self):
        body = _body_with_properties("model!!0!!arch=nsp")
        assert decode(make_packet(body)).model == UNKNOWN_MODEL


class TestTemperature:

    def test_parses_values(self):
        temp, matched = parse_temperature("status=ok::descr=34.0C/93.2F::expected=20-40C/68-104F", 0)
        assert matched
        assert temp.status == Status.OK
        assert temp.temp_celsius == 34.0
        assert temp.temp_fahrenheit == 93.2
        assert temp.min_expected_celsius == 20
        assert temp.max_expected_celsius == 40
        assert temp.min_expected_fahrenheit == 68
        assert temp.max_expected_fahrenheit == 104

    def test_parsing_ignores_locale(self):
        try:
            previous = locale.setlocale(locale.LC_NUMERIC)
            locale.setlocale(locale.LC_NUMERIC, "de_DE.UTF-8")
        except locale.Error:
            pytest.skip("de_DE locale not available")
        try:
            temp, _ = parse_temperature("status=ok::descr=34.0C/93.2F::expected=20-40C/68-104F")
            assert temp.temp_celsius == 34.0
            assert temp.min_expected_celsius == 20
            assert temp.max_expected_celsius == 40
        finally:
            locale.setlocale(locale.LC_NUMERIC, previous)

    def test_celsius_only_format_is_unknown(self):
        temp, matched = parse_temperature("status=ok::descr=34.0C", 3)
        assert not matched
        assert temp == Temperature(index=3, status=Status.UNKNOWN)

    def test_malformed_decimal_is_unknown(self):
        temp, matched = parse_temperature("status=ok::descr=3.4.0C/93.2F::expected=20-40C/68-104F")
        assert not matched
        assert temp.status == Status.UNKNOWN


class TestFan:

    def test_parses_speed(self):
        fan, matched = parse_fan("status=ok::descr=2352RPM", 0)
        assert matched
        assert fan.fan_speed == "2352"
        assert fan.fan_type == ""

    def test_parses_fan_type(self):
        fan, _ = parse_fan("status=warn::descr=1630RPM CPU", 2)
        assert fan.status == Status.WARN
        assert fan.fan_type == "CPU"
        assert fan.index == 2

    def test_unknown_status_token(self):
        fan, matched = parse_fan("status=exploding::descr=2000RPM")
        assert matched
        assert fan.status == Status.UNKNOWN


class TestUps:

    def test_not_present(self):
        ups, matched = parse_ups("status=not_present::descr=")
        assert matched
        assert ups.status == Status.NOT_PRESENT
        assert ups.charge == ""
        assert ups.time_left == ""
        assert ups.description == ""

    def test_not_present_from_packet(self):
        report = decode(make_packet())
        assert report.ups.status == Status.NOT_PRESENT
        assert report.ups.charge == ""
        assert report.ups.time_left == ""

    def test_battery_details(self):
        ups, _ = parse_ups("status=ok::descr=APC Back-UPS ES 550;Battery charge: 100%, 45 minutes")
        assert ups.status == Status.OK
        assert ups.description == "APC Back-UPS ES 550"
        assert ups.charge == "100"
        assert ups.time_left == "45 minutes"

    def test_description_without_battery_details(self):
        ups, matched = parse_ups("status=warn::descr=On battery")
        assert matched
        assert ups.description == "On battery"
        assert ups.charge == ""

    def test_malformed(self):
        ups, matched = parse_ups("junk")
        assert not matched
        assert ups.status == Status.UNKNOWN


class TestVolume:

    def test_parses_capacity(self):
        volume, matched = parse_volume("status=ok::descr= C: RAID Level X, ; 140 GB (15%)  921 GB", 1)
        assert matched
        assert volume.index == 1
        assert volume.name == "C"
        assert volume.raid_level == "RAID Level X"
        assert volume.raid_status == ""
        assert volume.gb_used == 140
        assert volume.gb_total == 921
        assert volume.percent_used == pytest.approx(15.2, abs=0.05)

    def test_raid_status(self):
        volume, _ = parse_volume("status=resync::descr=C: RAID Level 5, Resyncing; 10 GB (1%) of 1000 GB", 1)
        assert volume.status == Status.RESYNC
        assert volume.raid_level == "RAID Level 5"
        assert volume.raid_status == "Resyncing"
        assert volume.gb_total == 1000

    def test_empty_volume_percent(self):
        volume, matched = parse_volume("status=ok::descr=", 1)
        assert not matched
        assert volume.percent_used == 0.0


class TestDisk:

    def test_without_temperature(self):
        disk, matched = parse_disk("status=ok::descr=Channel 1: ST3320620AS 298 GB", 1)
        assert matched
        assert disk.channel == "Channel 1"
        assert disk.model == "ST3320620AS 298 GB"
        assert disk.temp_celsius == 0
        assert disk.state == "Active"

    def test_with_temperature(self):
        disk, _ = parse_disk("status=ok::descr= 2: SAMSUNG HD103SJ 931 GB, 38C/100F;31 ATA Errors", 2)
        assert disk.channel == "2"
        assert disk.model == "SAMSUNG HD103SJ 931 GB"
        assert disk.temp_celsius == 38
        assert disk.temp_fahrenheit == 100
        assert disk.state == "31 ATA Errors"

    def test_state_after_model_without_temperature(self):
        disk, _ = parse_disk("status=warn::descr=Channel 2: ST3500 465 GB, ;12 ATA Errors", 2)
        assert disk.model == "ST3500 465 GB"
        assert disk.temp_celsius == 0
        assert disk.state == "12 ATA Errors"

    def test_bracketed_state(self):
        disk, _ = parse_disk("status=spare_inactive::descr=Channel 3: WDC WD20EARS 1863 GB, 30C/86F [Spare]", 3)
        assert disk.status == Status.SPARE_INACTIVE
        assert disk.state == "Spare"

    def test_malformed(self):
        disk, matched = parse_disk("status=ok", 5)
        assert not matched
        assert disk.index == 5
        assert disk.status == Status.UNKNOWN
        assert disk.state == ""


class TestModel:

    def test_parses_model(self):
        assert parse_model("mode=home::descr=ReadyNAS Duo::arch=nsp") == ("ReadyNAS Duo", True)

    def test_default(self):
        assert parse_model("nothing") == (UNKNOWN_MODEL, False)
