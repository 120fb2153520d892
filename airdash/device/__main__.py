"""Headless telemetry reader entrypoint.

Connects to the BLE sensor device, refreshes every channel on an interval
and logs the readings. Reconnects when the device drops the link.

Usage: python -m airdash.device
"""

from airdash.device.polling import main

if __name__ == "__main__":
    main()
