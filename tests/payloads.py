def webhook_payload(samples, name="sleep_analysis"):
    """Wrap samples the way Health Auto Export posts them"""
    return {"data": {"metrics": [{"name": name, "units": "hr", "data": samples}]}}
