from collections import Counter

from deps import get_store
from legacy_records import LegacyRecordReader
from normalizers import normalize_weight, parse_medication_dose, parse_medication_frequency
from timeutils import parse_legacy_date

reader = LegacyRecordReader(get_store())
records = reader.get_all_records()
current = reader.get_current_data()

field_counts = Counter()
keyword_counts = Counter()
min_date = None
max_date = None
bad_dates = 0
weights_ok = 0
weights_bad = []

for record in records:
    for name in ('consulta', 'medico', 'vacuna', 'peso'):
        if getattr(record, name):
            field_counts[name] += 1
    keyword_counts.update(record.keywords)

    d = parse_legacy_date(record.date)
    if d is None:
        bad_dates += 1
    else:
        if min_date is None or d < min_date:
            min_date = d
        if max_date is None or d > max_date:
            max_date = d

    if record.peso:
        if normalize_weight(record.peso) is not None:
            weights_ok += 1
        else:
            weights_bad.append((record.id, record.peso))

print('\nTotals:')
print('  Legacy records:', len(records))
print('  Unparseable dates:', bad_dates)
for name, c in field_counts.most_common():
    print(f'  with {name}: {c}')

print('\nTop 20 keywords:')
for k, c in keyword_counts.most_common(20):
    print(f'  {c:8d}  {k}')

print('\nDate range:')
print('  earliest:', min_date.date().isoformat() if min_date else 'N/A')
print('  latest:  ', max_date.date().isoformat() if max_date else 'N/A')

print('\nWeights:')
print('  normalized:', weights_ok)
print('  rejected:  ', len(weights_bad))
for record_id, peso in weights_bad[:10]:
    print(f'    {record_id}: {peso!r}')

print('\nCurrent data:')
if current is None:
    print('  N/A')
else:
    print('  peso:', current.peso, 'date:', current.date)
    for med in current.medicamentos:
        dose = parse_medication_dose(med.dosis or med.instrucciones or '')
        hours = parse_medication_frequency(med.instrucciones or '')
        print(f'  {med.nombre}: dose={dose} every={hours}h from={med.fecha_inicio} to={med.fecha_fin}')
