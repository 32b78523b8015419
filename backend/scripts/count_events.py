from collections import Counter

from deps import get_event_service
from settings import settings

svc = get_event_service()
events = svc.list_events(settings.default_pet)
counts = Counter(e.type for e in events)

print(f'{settings.default_pet} events:', len(events))
for event_type, count in counts.most_common():
    print(f'  {count:6d}  {event_type}')
print('  migrated (legacyId set):', sum(1 for e in events if e.legacy_id))
