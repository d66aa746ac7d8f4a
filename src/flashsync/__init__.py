"""Flashsync: disk image selection and MCU firmware update coordination."""
