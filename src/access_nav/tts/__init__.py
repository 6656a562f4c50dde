from .announcer import AnnouncementSink, ConsoleAnnouncer, SpeechAnnouncer

__all__ = ["AnnouncementSink", "ConsoleAnnouncer", "SpeechAnnouncer"]
