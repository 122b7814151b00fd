import os
import json
from dotenv import load_dotenv
from supabase import create_client

load_dotenv('.env')
load_dotenv('backend/.env')

url = os.getenv('SUPABASE_URL') or os.getenv('NEXT_PUBLIC_SUPABASE_URL')
key = os.getenv('SUPABASE_SERVICE_ROLE_KEY') or os.getenv('SUPABASE_ANON_KEY')
client = create_client(url, key)

for table in ['restock_events', 'supplier_links', 'alerts', 'restock_monitors']:
    try:
        res = client.table(table).select('*', count='exact').execute()
        print(f"{table}: {res.count} rows")
    except Exception as e:
        print(f"{table}: FAILED ({e})")

res = client.table('alerts').select('*').eq('status', 'open').execute()
print(f"Open alerts: {len(res.data)}")

res = client.table('restock_events').select('*').order('detected_at', desc=True).limit(1).execute()
if res.data:
    print("Latest restock:")
    print(json.dumps(res.data[0], indent=2))
else:
    print("No restock events yet. Run seed_data.py or start the detection pipeline.")
