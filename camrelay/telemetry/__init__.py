"""Host telemetry sampling."""

from camrelay.telemetry.sampler import TelemetrySampler, parse_df_line

__all__ = ["TelemetrySampler", "parse_df_line"]
