import json
import logging
import os
import sys

from ipws.economic_calculator import format_pkr_billions
from ipws.results import generate

logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(message)s')

# Written relative to the directory the script is run from
OUTPUT_PATH = os.path.join('public', 'data', 'population-data.json')

DEFAULT_SEED = int(os.environ['IPWS_SEED']) if os.environ.get('IPWS_SEED') else None


def print_statistics(stats):
    print("\nPopulation Statistics:")
    print(f"   Total Affected Population: {stats['totalPopulation']:,}")
    print(f"   Total Households: {stats['totalHouseholds']:,}")
    print("   Vulnerable Groups:")
    print(f"     - Children (under 15): {stats['totalChildren']:,}")
    print(f"     - Elderly (over 65): {stats['totalElderly']:,}")
    print(f"     - Disabled: {stats['totalDisabled']:,}")
    print(f"   Economic Impact: {format_pkr_billions(stats['totalEconomicLoss'])}")
    print(f"   Livestock at Risk: {stats['totalLivestock']:,} animals")
    print(f"   Agricultural Land: {stats['totalAgriculturalLand']:,} hectares")

    print("\nBy Risk Level:")
    print(f"   Red: {stats['byRiskLevel']['red']:,} people")
    print(f"   Dark Orange: {stats['byRiskLevel']['darkOrange']:,} people")
    print(f"   Orange: {stats['byRiskLevel']['orange']:,} people")
    print(f"   Yellow: {stats['byRiskLevel']['yellow']:,} people")

    print("\nBy Province:")
    for province, population in stats['byProvince'].items():
        print(f"   {province}: {population:,}")


def main():
    print("Generating population data for IPWS sensors...\n")

    dataset = generate(DEFAULT_SEED)
    print(f"Generated {len(dataset.stations)} monitoring stations")
    print(f"Generated population data for {len(dataset.population_data)} stations")

    output = dataset.to_export()
    print_statistics(output['statistics'])

    output_dir = os.path.dirname(OUTPUT_PATH)
    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(OUTPUT_PATH, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)
    except OSError as e:
        print(f"Could not write {OUTPUT_PATH}: {e}")
        return 1

    size_kb = len(json.dumps(output)) / 1024
    print(f"\nPopulation data saved to: {os.path.abspath(OUTPUT_PATH)}")
    print(f"File size: {size_kb:.2f} KB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
